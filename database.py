"""
MongoDB access for users and art pieces.

The client is created on first use from the configured connection string.
Route handlers receive the database through the ``get_db`` dependency.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import get_settings
from schemas import ArtPiece, User

USER_COLLECTION = "user"
ART_COLLECTION = "art"

_client: Optional[MongoClient] = None
_client_lock = threading.Lock()


class DuplicateEmailError(Exception):
    pass


def get_db() -> Database:
    global _client
    settings = get_settings()
    with _client_lock:
        if _client is None:
            _client = MongoClient(settings.database_url)
    return _client[settings.database_name]


def ensure_indexes(db: Database) -> None:
    db[USER_COLLECTION].create_index("email", unique=True)
    db[ART_COLLECTION].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])


def to_object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


# Generic helpers

def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    if isinstance(data, BaseModel):
        doc = data.model_dump()
    else:
        doc = dict(data)
    doc["created_at"] = datetime.now(timezone.utc)
    result = db[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[tuple]] = None,
) -> List[dict]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    return list(cursor)


# Users

def find_user_by_email(db: Database, email: str) -> Optional[dict]:
    return db[USER_COLLECTION].find_one({"email": email.strip().lower()})


def find_user_by_id(db: Database, user_id: str) -> Optional[dict]:
    oid = to_object_id(user_id)
    if oid is None:
        return None
    return db[USER_COLLECTION].find_one({"_id": oid})


def insert_user(db: Database, user: User) -> str:
    try:
        return create_document(db, USER_COLLECTION, user)
    except DuplicateKeyError as exc:
        raise DuplicateEmailError(user.email) from exc


# Art pieces

def insert_art(db: Database, art: ArtPiece) -> dict:
    art_id = create_document(db, ART_COLLECTION, art)
    return db[ART_COLLECTION].find_one({"_id": ObjectId(art_id)})


def find_art_by_id(db: Database, art_id: str) -> Optional[dict]:
    oid = to_object_id(art_id)
    if oid is None:
        return None
    return db[ART_COLLECTION].find_one({"_id": oid})


def increment_votes(db: Database, art_id: str) -> Optional[dict]:
    oid = to_object_id(art_id)
    if oid is None:
        return None
    return db[ART_COLLECTION].find_one_and_update(
        {"_id": oid},
        {"$inc": {"votes": 1}},
        return_document=ReturnDocument.AFTER,
    )


def find_art_by_owner(db: Database, user_id: str) -> List[dict]:
    return get_documents(db, ART_COLLECTION, {"user_id": user_id}, sort=[("created_at", DESCENDING)])


def find_art_by_owner_and_mood(db: Database, user_id: str, mood: str) -> List[dict]:
    return get_documents(
        db,
        ART_COLLECTION,
        {"user_id": user_id, "mood": mood},
        sort=[("created_at", ASCENDING)],
    )
