"""Derived views over the report collection.

All views are computed by scanning the store on each call.
"""

from typing import Dict, List, Optional

from schemas import AddressSummary, Location, Report
from store import ReportStore, normalize_address

RANKING_MIN_REPORTS = 3
RANKING_LIMIT = 5


def _summarize(reports: List[Report]) -> List[AddressSummary]:
    groups: Dict[str, dict] = {}
    for report in reports:
        key = normalize_address(report.address)
        group = groups.get(key)
        if group is None:
            groups[key] = {"address": report.address, "total": report.score, "count": 1}
        else:
            group["total"] += report.score
            group["count"] += 1
    return [
        AddressSummary(
            address=g["address"],
            averageScore=g["total"] / g["count"],
            reportCount=g["count"],
        )
        for g in groups.values()
    ]


def _newest_first(reports: List[Report]) -> List[Report]:
    return sorted(reports, key=lambda r: r.createdAt, reverse=True)


def address_summary(store: ReportStore, address: str) -> Optional[AddressSummary]:
    reports = store.query_by_address(address)
    if not reports:
        return None
    return AddressSummary(
        address=normalize_address(address),
        averageScore=sum(r.score for r in reports) / len(reports),
        reportCount=len(reports),
    )


def address_summaries(store: ReportStore) -> List[AddressSummary]:
    """Average score and count for every address (heatmap feed)."""
    return _summarize(store.all())


def ranking(
    store: ReportStore,
    min_reports: int = RANKING_MIN_REPORTS,
    limit: int = RANKING_LIMIT,
) -> List[AddressSummary]:
    """Quietest addresses first, ignoring those with fewer than ``min_reports``."""
    eligible = [s for s in _summarize(store.all()) if s.reportCount >= min_reports]
    eligible.sort(key=lambda s: s.averageScore)
    return eligible[:limit]


def latest_reports(store: ReportStore, limit: int) -> List[dict]:
    return [r.public() for r in _newest_first(store.latest(limit))]


def submitter_history(store: ReportStore, identity: str) -> List[dict]:
    return [r.owned() for r in _newest_first(store.query_by_submitter(identity))]


def reports_for_address(store: ReportStore, address: str) -> List[dict]:
    return [r.public() for r in store.query_by_address(address)]


def locations(store: ReportStore, geocoder) -> List[Location]:
    """Map points for every report that has, or can be given, coordinates."""
    points = []
    resolved = {}
    for report in store.all():
        if report.lat is not None and report.lng is not None:
            points.append(Location(lat=report.lat, lng=report.lng, score=report.score))
            continue
        if report.address not in resolved:
            resolved[report.address] = geocoder.geocode_or_none(report.address)
        coords = resolved[report.address]
        if coords is not None:
            points.append(Location(lat=coords.lat, lng=coords.lng, score=report.score))
    return points
