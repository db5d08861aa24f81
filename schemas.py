from enum import Enum
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict

# Each stored model corresponds to a Mongo collection named by class name lowercased


class Role(str, Enum):
    ADMIN = "Admin"
    USER = "User"


class Admin(BaseModel):
    username: str
    password: str


class User(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    username: str
    password: str
    purchasedCourses: List[ObjectId] = []


class Credentials(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class Claims(BaseModel):
    username: str
    role: Role


class CourseIn(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    imageLink: Optional[str] = None
    published: Optional[bool] = None

    def missing_fields(self) -> List[str]:
        missing = [name for name in ("title", "description", "imageLink") if not getattr(self, name)]
        if self.price is None:
            missing.append("price")
        return missing


class Creator(BaseModel):
    id: str
    username: Optional[str] = None


class CourseOut(BaseModel):
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    imageLink: Optional[str] = None
    published: bool = True
    createdBy: Optional[Creator] = None


class TokenResponse(BaseModel):
    message: str
    token: str


class MessageResponse(BaseModel):
    message: str


class CourseList(BaseModel):
    Courses: List[CourseOut]


class CourseDetail(BaseModel):
    currentCourse: CourseOut


class PurchasedCourses(BaseModel):
    purchasedCourses: List[CourseOut]


class Me(BaseModel):
    username: str
