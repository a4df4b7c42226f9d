"""
MongoDB access for the Mess Directory.

`db` is None when DATABASE_URL is not configured; callers check it before use.
"""

import datetime as dt
import logging
import os
from typing import Any, Dict, List, Optional, Sequence, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import DESCENDING, MongoClient

from menu_timeline import Timeline, ValidationError, load_timeline
from schemas import DayMenu

logger = logging.getLogger(__name__)


class StoredMenuError(RuntimeError):
    """A stored menu that no longer reads back as a valid timeline."""


DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "mess_directory")

client = None
db = None

if DATABASE_URL:
    client = MongoClient(DATABASE_URL)
    db = client[DATABASE_NAME]
    logger.info("Using MongoDB database %s", DATABASE_NAME)
else:
    logger.warning("DATABASE_URL not set, database unavailable")


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document with created_at/updated_at stamps and return its id as a string."""
    if db is None:
        raise RuntimeError("Database not available")
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    doc = dict(data)
    doc["created_at"] = doc["updated_at"] = _now()
    result = db[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(collection_name: str) -> List[Dict[str, Any]]:
    """Newest documents first."""
    if db is None:
        raise RuntimeError("Database not available")
    return list(db[collection_name].find({}).sort("created_at", DESCENDING))


def get_mess(mess_id: ObjectId) -> Optional[Dict[str, Any]]:
    if db is None:
        raise RuntimeError("Database not available")
    return db["mess"].find_one({"_id": mess_id})


def update_mess(mess_id: ObjectId, fields: Dict[str, Any]) -> bool:
    """Set profile fields; returns False when no mess matched."""
    if db is None:
        raise RuntimeError("Database not available")
    fields = dict(fields, updated_at=_now())
    res = db["mess"].update_one({"_id": mess_id}, {"$set": fields})
    return res.matched_count > 0


# Menu timeline <-> stored documents

def timeline_to_documents(timeline: Sequence[DayMenu]) -> List[Dict[str, Any]]:
    """Stored days carry a UTC-midnight datetime, as BSON has no date type."""
    docs = []
    for day in timeline:
        docs.append({
            "date": dt.datetime(day.date.year, day.date.month, day.date.day),
            "items": [dish.model_dump(by_alias=True, exclude_none=True) for dish in day.dishes],
        })
    return docs


def timeline_from_document(doc: Optional[Dict[str, Any]]) -> Timeline:
    doc = doc or {}
    try:
        return load_timeline(doc.get("menu") or [])
    except ValidationError as e:
        raise StoredMenuError(f"Stored menu of mess {doc.get('_id')} is invalid: {e}") from e


def save_menu(mess_id: ObjectId, timeline: Sequence[DayMenu]) -> bool:
    """Overwrite the stored menu in one write; the last writer wins."""
    saved = update_mess(mess_id, {"menu": timeline_to_documents(timeline)})
    if saved:
        logger.info("Saved menu for mess %s (%d days)", mess_id, len(timeline))
    return saved
