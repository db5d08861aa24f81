import logging

from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from admin import course_id_or_404
from auth import get_current_claims, login_account, register_account
from database import find_course, find_courses, get_db, resolve_courses
from schemas import Claims, CourseDetail, CourseList, Credentials, MessageResponse, PurchasedCourses, Role, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/signup", response_model=TokenResponse)
async def signup(credentials: Credentials, db: AsyncIOMotorDatabase = Depends(get_db)):
    token = await register_account(db, Role.USER, credentials)
    return {"message": "user created successfully", "token": token}


@router.post("/login", response_model=TokenResponse)
async def login(credentials: Credentials, db: AsyncIOMotorDatabase = Depends(get_db)):
    token = await login_account(db, Role.USER, credentials)
    return {"message": "User Loggedin successfully", "token": token}


@router.get("/courses", response_model=CourseList)
async def list_published_courses(_: Claims = Depends(get_current_claims), db: AsyncIOMotorDatabase = Depends(get_db)):
    return {"Courses": await find_courses(db, {"published": True})}


@router.get("/courses/{course_id}", response_model=CourseDetail)
async def get_course(
    course_id: str,
    _: Claims = Depends(get_current_claims),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    # Unpublished courses stay reachable by id
    oid = course_id_or_404(course_id)
    course = await find_course(db, oid)
    if not course:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course doesn't exists")
    return {"currentCourse": course}


@router.post("/courses/{course_id}", response_model=MessageResponse)
async def purchase_course(
    course_id: str,
    claims: Claims = Depends(get_current_claims),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    oid = course_id_or_404(course_id)
    if not await db["course"].find_one({"_id": oid}):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course doesn't exists")
    if not await db["user"].find_one({"username": claims.username}):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    # Append only when absent, in one atomic update
    result = await db["user"].update_one(
        {"username": claims.username, "purchasedCourses": {"$ne": oid}},
        {"$push": {"purchasedCourses": oid}},
    )
    if result.modified_count == 0:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course already purchased")
    logger.info("course %s purchased by %s", course_id, claims.username)
    return {"message": "Course Purchased Successfully"}


@router.get("/purchasedCourses", response_model=PurchasedCourses)
async def list_purchased_courses(claims: Claims = Depends(get_current_claims), db: AsyncIOMotorDatabase = Depends(get_db)):
    user = await db["user"].find_one({"username": claims.username})
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    courses = await resolve_courses(db, user.get("purchasedCourses") or [])
    return {"purchasedCourses": courses}
