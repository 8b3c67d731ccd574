"""
MongoDB access for the noise report service.

The client is a process-wide singleton built on first use. Construction is
guarded by a lock so concurrent first requests share one client.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from config import Settings, get_settings

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None
_client_lock = threading.Lock()


def get_client(settings: Optional[Settings] = None) -> MongoClient:
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                settings = settings or get_settings()
                logger.info("Connecting to MongoDB database %s", settings.database_name)
                _client = MongoClient(settings.mongo_url, tz_aware=True)
    return _client


def reset_client() -> None:
    """Close and forget the shared client (tests, shutdown)."""
    global _client
    with _client_lock:
        if _client is not None:
            _client.close()
        _client = None


def get_db(settings: Optional[Settings] = None) -> Database:
    settings = settings or get_settings()
    return get_client(settings)[settings.database_name]


def get_reports_collection(settings: Optional[Settings] = None) -> Collection:
    settings = settings or get_settings()
    return get_db(settings)[settings.reports_collection]


def ensure_indexes(collection: Collection) -> None:
    collection.create_index([("addressKey", ASCENDING)])
    collection.create_index([("submitterId", ASCENDING), ("createdAt", DESCENDING)])
    collection.create_index([("createdAt", DESCENDING)])


def create_document(collection: Collection, data: Dict[str, Any]) -> str:
    result = collection.insert_one(dict(data))
    return str(result.inserted_id)


def get_documents(
    collection: Collection,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    sort: Optional[List] = None,
) -> List[Dict[str, Any]]:
    cursor = collection.find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
