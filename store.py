"""Report persistence over a MongoDB collection."""

import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from database import create_document, get_documents
from errors import NotFound, PermissionDenied, WriteError
from schemas import Coordinates, Report

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def now_ms() -> int:
    return int(time.time() * 1000)


def normalize_address(address: str) -> str:
    """Matching key for an address: trimmed, whitespace runs collapsed."""
    return _WHITESPACE.sub(" ", address or "").strip()


def to_epoch_ms(value: Any) -> int:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
        if isinstance(seconds, int) and isinstance(nanos, int):
            return seconds * 1000 + nanos // 1_000_000
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    raise WriteError(f"Unreadable report timestamp: {value!r}")


def _parse_id(report_id: str) -> ObjectId:
    try:
        return ObjectId(report_id)
    except (InvalidId, TypeError):
        raise NotFound(f"Report {report_id} not found")


def _to_report(doc: Dict[str, Any]) -> Report:
    return Report(
        id=str(doc["_id"]),
        submitterId=doc["submitterId"],
        address=doc["address"],
        score=doc["score"],
        noiseTypes=list(doc.get("noiseTypes") or []),
        createdAt=to_epoch_ms(doc["createdAt"]),
        lat=doc.get("lat"),
        lng=doc.get("lng"),
    )


class ReportStore:
    """Insert, look up and scan reports.

    ``clock`` supplies the server timestamp assigned on insert.
    """

    def __init__(self, collection: Collection, clock: Callable[[], int] = now_ms):
        self.collection = collection
        self.clock = clock

    def _find(self, filter_dict=None, limit=None, sort=None) -> List[Report]:
        try:
            docs = get_documents(self.collection, filter_dict, limit, sort)
        except PyMongoError as exc:
            logger.exception("Report query failed: %s", filter_dict)
            raise WriteError("Failed to read reports") from exc
        return [_to_report(d) for d in docs]

    def insert(
        self,
        submitter_id: str,
        address: str,
        score: int,
        noise_types: List[str],
        coordinates: Optional[Coordinates] = None,
    ) -> Report:
        data = {
            "submitterId": submitter_id,
            "address": address,
            "addressKey": normalize_address(address),
            "score": score,
            "noiseTypes": list(noise_types),
            "createdAt": self.clock(),
        }
        if coordinates is not None:
            data["lat"] = coordinates.lat
            data["lng"] = coordinates.lng
        try:
            _id = create_document(self.collection, data)
        except PyMongoError as exc:
            logger.exception("Report insert failed for %s", address)
            raise WriteError("Failed to submit report") from exc
        return _to_report({"_id": _id, **data})

    def get_by_id(self, report_id: str) -> Report:
        oid = _parse_id(report_id)
        try:
            doc = self.collection.find_one({"_id": oid})
        except PyMongoError as exc:
            logger.exception("Report lookup failed for %s", report_id)
            raise WriteError("Failed to read report") from exc
        if doc is None:
            raise NotFound(f"Report {report_id} not found")
        return _to_report(doc)

    def query_by_address(self, address: str) -> List[Report]:
        return self._find({"addressKey": normalize_address(address)})

    def query_by_submitter(self, submitter_id: str) -> List[Report]:
        return self._find({"submitterId": submitter_id})

    def latest(self, limit: int) -> List[Report]:
        return self._find({}, limit=limit, sort=[("createdAt", DESCENDING)])

    def all(self) -> List[Report]:
        return self._find({})

    def update(self, report_id: str, submitter_id: str, score: int, noise_types: List[str]) -> Report:
        """Replace score and noise types of a report owned by ``submitter_id``."""
        existing = self.get_by_id(report_id)
        if existing.submitterId != submitter_id:
            raise PermissionDenied("Only the original submitter can edit this report")
        try:
            doc = self.collection.find_one_and_update(
                {"_id": ObjectId(existing.id), "submitterId": submitter_id},
                {"$set": {"score": score, "noiseTypes": list(noise_types)}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            logger.exception("Report update failed for %s", report_id)
            raise WriteError("Failed to update report") from exc
        if doc is None:
            raise NotFound(f"Report {report_id} not found")
        return _to_report(doc)
