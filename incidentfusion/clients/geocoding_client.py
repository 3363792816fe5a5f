"""Nominatim reverse-geocoding client for IncidentFusion.

Turns an inferred event centre into a human-readable address. The client is an
optional collaborator: synthesis works without it and callers treat any
failure as "no address available".
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from requests import Session
from requests.adapters import HTTPAdapter

from config.defaults import (
    GEOCODING_BASE_URL,
    GEOCODING_REQUEST_TIMEOUT,
    GEOCODING_USER_AGENT,
)

logger = logging.getLogger(__name__)

# Nominatim address keys that can stand in for a neighbourhood, most specific first
_NEIGHBORHOOD_KEYS = ("neighbourhood", "suburb", "quarter", "city_district")
_CITY_KEYS = ("city", "town", "village", "municipality")


class GeocodingClient:
    """Reverse geocoder backed by the Nominatim ``/reverse`` endpoint.

    Args:
        base_url: Nominatim server root.
        request_timeout: HTTP request timeout in seconds.
        user_agent: User-Agent header (Nominatim's usage policy requires one).
    """

    def __init__(
        self,
        base_url: str = GEOCODING_BASE_URL,
        request_timeout: int = GEOCODING_REQUEST_TIMEOUT,
        user_agent: str = GEOCODING_USER_AGENT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self._session = Session()
        self._session.headers.update({"User-Agent": user_agent})
        adapter = HTTPAdapter(max_retries=0)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    def reverse(self, lat: float, lon: float) -> Optional[Dict[str, Optional[str]]]:
        """Reverse-geocode a coordinate.

        Args:
            lat: Latitude in decimal degrees.
            lon: Longitude in decimal degrees.

        Returns:
            Dict with ``address``, ``neighborhood``, ``city``, ``state`` and
            ``country`` keys (values may be None), or None when the lookup
            fails or yields no result.
        """
        params = {"lat": lat, "lon": lon, "format": "jsonv2", "addressdetails": 1}
        try:
            resp = self._session.get(
                f"{self.base_url}/reverse",
                params=params,
                timeout=self.request_timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.exceptions.RequestException as exc:
            logger.warning("Reverse geocoding failed for (%.5f, %.5f): %s", lat, lon, exc)
            return None
        except ValueError as exc:
            logger.warning("Reverse geocoding returned non-JSON body: %s", exc)
            return None

        if not isinstance(payload, dict) or "error" in payload:
            logger.info("No reverse geocoding result for (%.5f, %.5f)", lat, lon)
            return None
        return _parse_reverse_payload(payload)

    def close(self) -> None:
        self._session.close()


def _first_present(address: Dict[str, Any], keys) -> Optional[str]:
    for key in keys:
        value = address.get(key)
        if value:
            return str(value)
    return None


def _parse_reverse_payload(payload: Dict[str, Any]) -> Dict[str, Optional[str]]:
    address = payload.get("address") or {}
    return {
        "address": payload.get("display_name"),
        "neighborhood": _first_present(address, _NEIGHBORHOOD_KEYS),
        "city": _first_present(address, _CITY_KEYS),
        "state": address.get("state"),
        "country": address.get("country"),
    }
