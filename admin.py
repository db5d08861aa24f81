import logging

from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from auth import get_current_admin, login_account, register_account
from database import find_course, find_courses, get_db, parse_object_id
from schemas import Claims, CourseDetail, CourseIn, CourseList, Credentials, MessageResponse, Role, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def require_course_details(course: CourseIn) -> None:
    if course.missing_fields():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Course details missing")


def course_id_or_404(course_id: str):
    oid = parse_object_id(course_id)
    if oid is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid Course ID")
    return oid


@router.post("/signup", response_model=TokenResponse)
async def signup(credentials: Credentials, db: AsyncIOMotorDatabase = Depends(get_db)):
    token = await register_account(db, Role.ADMIN, credentials)
    return {"message": "Admin created successfully", "token": token}


@router.post("/login", response_model=TokenResponse)
async def login(credentials: Credentials, db: AsyncIOMotorDatabase = Depends(get_db)):
    token = await login_account(db, Role.ADMIN, credentials)
    return {"message": "Admin Loggedin successfully", "token": token}


@router.get("/courses", response_model=CourseList)
async def list_courses(_: Claims = Depends(get_current_admin), db: AsyncIOMotorDatabase = Depends(get_db)):
    return {"Courses": await find_courses(db)}


@router.post("/courses", response_model=MessageResponse)
async def create_course(
    course: CourseIn,
    claims: Claims = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    require_course_details(course)
    if await db["course"].find_one({"title": course.title}):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course already exists")
    admin = await db["admin"].find_one({"username": claims.username})
    if not admin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course Creator not found")
    doc = course.model_dump()
    if doc["published"] is None:
        doc["published"] = True
    doc["createdBy"] = admin["_id"]
    try:
        result = await db["course"].insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course already exists")
    logger.info("course %s created by %s", result.inserted_id, claims.username)
    return {"message": "Course Created Successfully"}


@router.delete("/courses/{course_id}", response_model=MessageResponse)
async def delete_course(
    course_id: str,
    claims: Claims = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    oid = course_id_or_404(course_id)
    result = await db["course"].delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course doesn't exists")
    logger.info("course %s deleted by %s", course_id, claims.username)
    return {"message": "Course Deleted Successfully"}


@router.put("/courses/{course_id}", response_model=MessageResponse)
async def update_course(
    course_id: str,
    course: CourseIn,
    claims: Claims = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    oid = course_id_or_404(course_id)
    require_course_details(course)
    # createdBy is never part of the update
    updates = {k: v for k, v in course.model_dump().items() if v is not None}
    if not await db["course"].find_one({"_id": oid}):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course doesn't exists")
    if await db["course"].find_one({"title": course.title, "_id": {"$ne": oid}}):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course already exists")
    try:
        result = await db["course"].update_one({"_id": oid}, {"$set": updates})
    except DuplicateKeyError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course already exists")
    if result.matched_count == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course doesn't exists")
    logger.info("course %s updated by %s", course_id, claims.username)
    return {"message": "Course Updated Successfully"}


@router.get("/courses/{course_id}", response_model=CourseDetail)
async def get_course(
    course_id: str,
    _: Claims = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    oid = course_id_or_404(course_id)
    course = await find_course(db, oid)
    if not course:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course doesn't exists")
    return {"currentCourse": course}
