import os
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from dotenv import find_dotenv, load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

load_dotenv(find_dotenv(usecwd=True))

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "Sell-Courses")

_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None


def get_db() -> AsyncIOMotorDatabase:
    global _client, _db
    if _db is None:
        _client = AsyncIOMotorClient(MONGODB_URI)
        _db = _client[DATABASE_NAME]
    return _db


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    # Usernames are unique per identity space
    await db["admin"].create_index("username", unique=True)
    await db["user"].create_index("username", unique=True)
    await db["course"].create_index("title", unique=True)
    await db["course"].create_index([("published", 1)])


def parse_object_id(value: str) -> Optional[ObjectId]:
    if not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def serialize_creator(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return None
    return {"id": str(doc["_id"]), "username": doc.get("username")}


def serialize_course(doc: Dict[str, Any], creator: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "title": doc.get("title"),
        "description": doc.get("description"),
        "price": doc.get("price"),
        "imageLink": doc.get("imageLink"),
        "published": doc.get("published", True),
        "createdBy": serialize_creator(creator),
    }


async def populate_creators(db: AsyncIOMotorDatabase, courses: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Resolve each course's ``createdBy`` reference to the admin record.

    Admins are fetched in a single query; a course whose creator no longer
    exists is returned with ``createdBy`` set to ``None``.
    """
    courses = list(courses)
    creator_ids = {c["createdBy"] for c in courses if c.get("createdBy") is not None}
    admins: Dict[ObjectId, Dict[str, Any]] = {}
    if creator_ids:
        async for admin in db["admin"].find({"_id": {"$in": list(creator_ids)}}):
            admins[admin["_id"]] = admin
    return [serialize_course(c, admins.get(c.get("createdBy"))) for c in courses]


async def find_courses(db: AsyncIOMotorDatabase, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    filter_dict = filter_dict or {}
    docs: List[Dict[str, Any]] = []
    async for doc in db["course"].find(filter_dict):
        docs.append(doc)
    return await populate_creators(db, docs)


async def find_course(db: AsyncIOMotorDatabase, course_id: ObjectId) -> Optional[Dict[str, Any]]:
    doc = await db["course"].find_one({"_id": course_id})
    if not doc:
        return None
    populated = await populate_creators(db, [doc])
    return populated[0]


async def resolve_courses(db: AsyncIOMotorDatabase, course_ids: List[ObjectId]) -> List[Dict[str, Any]]:
    # Keeps reference order and drops references to deleted courses
    if not course_ids:
        return []
    by_id: Dict[ObjectId, Dict[str, Any]] = {}
    async for doc in db["course"].find({"_id": {"$in": list(course_ids)}}):
        by_id[doc["_id"]] = doc
    ordered = [by_id[cid] for cid in course_ids if cid in by_id]
    return await populate_creators(db, ordered)
