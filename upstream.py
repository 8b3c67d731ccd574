"""
Clients for the third-party address lookup and geocoding APIs.

Neither client retries. Address lookup failures surface as
UpstreamUnavailable; geocoding callers usually want ``geocode_or_none`` since
a report without coordinates is still a valid report.
"""

import logging
from typing import List, Optional

import requests

from config import Settings
from errors import InvalidInput, UpstreamUnavailable
from schemas import Coordinates

logger = logging.getLogger(__name__)


class AddressResolver:
    """Free-text keyword -> canonical road addresses (road-name address API)."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.api_key = settings.road_name_api_key
        self.base_url = settings.road_name_api_url
        self.timeout = settings.http_timeout_seconds
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def search(self, keyword: str, count: int = 10) -> List[str]:
        keyword = (keyword or "").strip()
        if not keyword:
            raise InvalidInput("Keyword is required")
        if not self.api_key:
            logger.error("ROAD_NAME_API_KEY is not set")
            raise UpstreamUnavailable("Address lookup is not configured")

        params = {
            "confmKey": self.api_key,
            "currentPage": 1,
            "countPerPage": count,
            "keyword": keyword,
            "resultType": "json",
        }
        try:
            resp = self.session.get(self.base_url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Address lookup failed for %r: %s", keyword, exc)
            raise UpstreamUnavailable("Failed to fetch address data") from exc

        body = data.get("results") if isinstance(data, dict) else None
        results = body.get("juso") if isinstance(body, dict) else None
        if not isinstance(body, dict) or not isinstance(results, (list, type(None))):
            raise UpstreamUnavailable("Address lookup returned an unexpected payload")
        addresses = []
        for item in results or []:
            if not isinstance(item, dict):
                continue
            road = (item.get("roadAddr") or "").strip()
            if not road:
                continue
            building = (item.get("bdNm") or "").strip()
            candidate = f"{road} {building}" if building else road
            if candidate not in addresses:
                addresses.append(candidate)
        return addresses


class Geocoder:
    """Canonical address -> coordinates (map geocoding API)."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.client_id = settings.naver_map_client_id
        self.client_secret = settings.naver_map_client_secret
        self.base_url = settings.geocode_api_url
        self.timeout = settings.http_timeout_seconds
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def geocode(self, address: str) -> Optional[Coordinates]:
        """Return coordinates, None when the address is unknown.

        Raises UpstreamUnavailable when the service cannot be reached or
        answers with something unusable.
        """
        if not self.client_id or not self.client_secret:
            raise UpstreamUnavailable("Geocoding is not configured")
        headers = {
            "X-NCP-APIGW-API-KEY-ID": self.client_id,
            "X-NCP-APIGW-API-KEY": self.client_secret,
        }
        try:
            resp = self.session.get(
                self.base_url, params={"query": address}, headers=headers, timeout=self.timeout
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise UpstreamUnavailable(f"Geocoding failed: {exc}") from exc

        matches = data.get("addresses") if isinstance(data, dict) else None
        if not isinstance(data, dict) or not isinstance(matches, (list, type(None))):
            raise UpstreamUnavailable("Geocoding returned an unexpected payload")
        if not matches:
            return None
        first = matches[0]
        try:
            return Coordinates(lat=float(first["y"]), lng=float(first["x"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamUnavailable("Geocoding returned malformed coordinates") from exc

    def geocode_or_none(self, address: str) -> Optional[Coordinates]:
        try:
            return self.geocode(address)
        except UpstreamUnavailable as exc:
            logger.warning("Geocoding skipped for %r: %s", address, exc.message)
            return None
