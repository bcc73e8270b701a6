"""
MongoDB access

One client per process. Collections are named after the lowercase model
name: "user", "budget", "expense".
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database


def connect(database_url: str, database_name: str) -> Database:
    client = MongoClient(database_url)
    return client[database_name]


def ensure_indexes(db: Database) -> None:
    db["user"].create_index([("email", ASCENDING)], unique=True)
    # One budget per user; closes the read-then-insert race in budget creation.
    db["budget"].create_index([("userId", ASCENDING)], unique=True)
    db["expense"].create_index([("userId", ASCENDING), ("date", DESCENDING)])


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form pymongo hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_object_id(value: str) -> Optional[ObjectId]:
    """ObjectId for a path parameter, or None when it cannot be one."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def create_document(db: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    result = db[collection_name].insert_one(dict(data))
    return str(result.inserted_id)


def get_documents(db: Database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  sort: Optional[List] = None) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    return list(cursor)


def serialize_doc(doc: Any) -> Any:
    """Make a stored document JSON friendly: ObjectIds become strings."""
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, list):
        return [serialize_doc(d) for d in doc]
    if isinstance(doc, dict):
        return {k: serialize_doc(v) for k, v in doc.items()}
    return doc
