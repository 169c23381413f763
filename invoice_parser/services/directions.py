"""Google Maps Directions client and encoded-polyline decoder."""

import httpx
from loguru import logger

from ..core.exceptions import ProviderNotConfigured, RouteNotFound, UpstreamProviderError
from ..models.weather import LatLng, RouteInfo
from .vendors import VendorClientConfig


def _read_varint(encoded: str, index: int) -> tuple[int, int]:
    """Read one zigzag-encoded delta starting at index; return (delta, next index)."""
    result = 0
    shift = 0
    while True:
        if index >= len(encoded):
            raise ValueError("Truncated polyline")
        chunk = ord(encoded[index]) - 63
        index += 1
        result |= (chunk & 0x1F) << shift
        shift += 5
        if chunk < 0x20:
            break
    delta = ~(result >> 1) if result & 1 else result >> 1
    return delta, index


def decode_polyline(encoded: str) -> list[LatLng]:
    """
    Decode a Google encoded polyline into absolute coordinates.

    Each point is a (lat, lng) pair of deltas from the previous point, in
    1e-5 degrees, written as 5-bit groups offset by 63 with 0x20 as the
    continuation bit.
    """
    points = []
    index = 0
    lat = 0
    lng = 0
    while index < len(encoded):
        dlat, index = _read_varint(encoded, index)
        dlng, index = _read_varint(encoded, index)
        lat += dlat
        lng += dlng
        points.append(LatLng(lat=lat / 1e5, lng=lng / 1e5))
    return points


class GoogleDirectionsClient:
    provider = "google_maps"

    def __init__(self, config: VendorClientConfig, http: httpx.AsyncClient):
        self.config = config
        self.http = http

    def ensure_configured(self) -> None:
        if not self.config.configured:
            raise ProviderNotConfigured(self.provider, "GOOGLE_MAPS_API_KEY")

    async def get_route(self, origin: str, destination: str) -> RouteInfo:
        """
        Driving route between two free-text locations.

        Raises:
            RouteNotFound: status is not OK or there are no routes
            UpstreamProviderError: transport failure or non-2xx response
        """
        self.ensure_configured()
        try:
            response = await self.http.get(
                "/maps/api/directions/json",
                params={
                    "origin": origin,
                    "destination": destination,
                    "key": self.config.api_key,
                    "mode": "driving",
                },
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamProviderError(self.provider, e.response.text[:500], e.response.status_code, e) from e
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamProviderError(self.provider, str(e) or type(e).__name__, original_error=e) from e

        status = data.get("status")
        routes = data.get("routes") or []
        if status != "OK" or not routes:
            logger.warning("No route found", origin=origin, destination=destination, status=status)
            raise RouteNotFound(origin, destination, status)

        route = routes[0]
        leg = (route.get("legs") or [{}])[0]
        polyline = (route.get("overview_polyline") or {}).get("points") or ""

        try:
            path = decode_polyline(polyline)
        except ValueError as e:
            raise UpstreamProviderError(self.provider, f"Malformed route polyline: {e}", original_error=e) from e

        return RouteInfo(
            distance=(leg.get("distance") or {}).get("text") or "",
            duration=(leg.get("duration") or {}).get("text") or "",
            path=path,
        )
