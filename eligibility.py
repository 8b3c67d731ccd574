"""
Submission eligibility.

An identity may submit its first ``initial_quota`` reports at any time. After
that, a new report is allowed only once the most recent one is older than the
cooldown window. Identities listed in ``EXEMPT_IDENTITIES`` are never limited.

The check reads the store and is evaluated again at write time. It is not
atomic with the insert that follows: two concurrent submissions from the same
identity can both pass.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from config import Settings
from errors import RateLimited, Unauthenticated
from schemas import Eligibility
from store import ReportStore, now_ms

logger = logging.getLogger(__name__)


def _format_ms(value: int) -> str:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def check_eligibility(
    identity: Optional[str],
    store: ReportStore,
    settings: Settings,
    now: Optional[int] = None,
) -> Eligibility:
    if not identity:
        raise Unauthenticated()

    if identity in settings.exempt_identities:
        return Eligibility(eligible=True)

    prior = store.query_by_submitter(identity)
    if len(prior) < settings.initial_quota:
        return Eligibility(eligible=True)

    latest = max(prior, key=lambda r: r.createdAt)
    now = now_ms() if now is None else now
    if now - latest.createdAt > settings.cooldown_ms:
        return Eligibility(eligible=True)

    next_allowed = latest.createdAt + settings.cooldown_ms
    reason = (
        f"A report has been submitted within the last {settings.cooldown_days} days. "
        f"You can submit again after {_format_ms(next_allowed)}."
    )
    logger.info("Submission blocked for %s: %d prior reports", identity, len(prior))
    return Eligibility(eligible=False, reason=reason)


def require_eligible(identity: Optional[str], store: ReportStore, settings: Settings) -> None:
    """Raise RateLimited unless ``identity`` may submit right now."""
    result = check_eligibility(identity, store, settings)
    if not result.eligible:
        raise RateLimited(result.reason)
