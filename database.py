"""
MongoDB access for Taskboard

The client is created lazily by pymongo, so importing this module never
blocks on the network. When DATABASE_URL is unset, ``db`` stays None and
every request that needs storage fails with a generic server error.
"""
import logging
from typing import Any, Optional, Union

from bson.objectid import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.database import Database

from backend.config import get_settings
from backend.errors import Internal

logger = logging.getLogger(__name__)

_settings = get_settings()

client: Optional[MongoClient] = None
db: Optional[Database] = None

if _settings.database_url:
    client = MongoClient(_settings.database_url, tz_aware=True)
    db = client[_settings.database_name]


def get_db() -> Database:
    """FastAPI dependency yielding the configured database."""
    if db is None:
        raise Internal("Database not configured")
    return db


def create_document(collection_name: str, data: Union[BaseModel, dict], database: Optional[Database] = None) -> str:
    """Insert a single document and return its id as a string."""
    target = database if database is not None else get_db()
    if isinstance(data, BaseModel):
        data = data.model_dump()
    result = target[collection_name].insert_one(dict(data))
    return str(result.inserted_id)


def next_sequence(database: Database, name: str) -> int:
    """Atomically increment and return the named counter."""
    doc = database["counter"].find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int(doc["seq"])


def ensure_indexes(database: Database) -> None:
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["task"].create_index([("user_id", ASCENDING), ("created_at", ASCENDING)])
    logger.debug("Indexes ensured on %s", database.name)


def close() -> None:
    if client is not None:
        client.close()


def as_id(value: Any):
    """Parse a client-supplied id; return None when it is not an ObjectId."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None
