"""Report submission and editing."""

import logging
from typing import List

from config import Settings
from eligibility import require_eligible
from errors import InvalidInput
from schemas import Report, ReportCreate, ReportUpdate
from store import ReportStore
from upstream import Geocoder

logger = logging.getLogger(__name__)


def validate_noise_types(noise_types: List[str], settings: Settings) -> None:
    vocabulary = settings.noise_types
    unknown = [label for label in noise_types if label not in vocabulary]
    if unknown:
        raise InvalidInput(f"Unknown noise types: {', '.join(unknown)}")


def submit_report(
    identity: str,
    payload: ReportCreate,
    store: ReportStore,
    geocoder: Geocoder,
    settings: Settings,
) -> Report:
    validate_noise_types(payload.noiseTypes, settings)
    # Eligibility is time dependent; never trust an earlier check.
    require_eligible(identity, store, settings)

    coordinates = geocoder.geocode_or_none(payload.address)
    report = store.insert(
        identity,
        payload.address,
        payload.score,
        payload.noiseTypes,
        coordinates=coordinates,
    )
    logger.info("Report %s submitted for %s", report.id, report.address)
    return report


def update_report(
    identity: str,
    report_id: str,
    payload: ReportUpdate,
    store: ReportStore,
    settings: Settings,
) -> Report:
    validate_noise_types(payload.noiseTypes, settings)
    report = store.update(report_id, identity, payload.score, payload.noiseTypes)
    logger.info("Report %s updated", report.id)
    return report
