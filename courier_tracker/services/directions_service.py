"""
OpenRouteService client: geocoding and driving directions.

Every outbound call is retried with a linearly growing delay. Route payloads
are validated by `Route.from_feature`; malformed data is never retried.

`GeocodingError` is reserved for addresses with no match. Transport, HTTP
status and payload failures raise `DirectionsError`.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import httpx

from courier_tracker.config.directions import directions_config
from courier_tracker.exceptions import DirectionsError, GeocodingError, InvalidRouteData
from courier_tracker.models.route import Coordinate, Route

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DirectionsService:
    """Turns two addresses into a validated Route."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        profile: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.api_key = directions_config.API_KEY if api_key is None else api_key
        self.base_url = (base_url or directions_config.BASE_URL).rstrip("/")
        self.profile = profile or directions_config.PROFILE
        self.timeout = directions_config.TIMEOUT_SECONDS if timeout is None else timeout
        self.max_retries = max(1, directions_config.MAX_RETRIES if max_retries is None else max_retries)
        self.retry_delay = directions_config.RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self._transport = transport
        self._sleep = sleep
        self._http_client: Optional[httpx.AsyncClient] = None
        self._stats = {"requests": 0, "retries": 0, "errors": 0}

    @property
    def directions_url(self) -> str:
        return f"{self.base_url}/v2/directions/{self.profile}"

    @property
    def geocode_url(self) -> str:
        return f"{self.base_url}/geocode/search"

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            )
        return self._http_client

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        client = await self._get_client()
        self._stats["requests"] += 1
        response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    async def _retry(self, label: str, operation: Callable[[], Awaitable[T]]) -> T:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                return await operation()
            except (GeocodingError, DirectionsError) as exc:
                last_error = exc
                self._stats["errors"] += 1
                more = attempt < self.max_retries
                logger.warning(
                    f"[Directions] {label}: attempt {attempt} failed ({exc}). "
                    f"{'Retrying...' if more else 'No more retries.'}"
                )
                if more:
                    self._stats["retries"] += 1
                    await self._sleep(self.retry_delay * attempt)
        raise last_error or DirectionsError(f"{label} failed")

    async def geocode(self, address: str) -> Coordinate:
        """Resolve an address to its first geocoding match."""

        async def attempt() -> Coordinate:
            try:
                data = await self._get_json(
                    self.geocode_url,
                    {"api_key": self.api_key, "text": address, "size": 1},
                )
            except (httpx.HTTPError, ValueError) as exc:
                # Service outage, not a bad address
                raise DirectionsError(f"Geocoding request failed for '{address}': {exc}") from exc
            if not isinstance(data, dict):
                raise DirectionsError(f"Malformed geocoding response for '{address}'")
            features = data.get("features")
            if not features:
                raise GeocodingError(f"Could not geocode address: {address}")
            try:
                return Coordinate.from_lon_lat(features[0]["geometry"]["coordinates"])
            except (KeyError, TypeError, InvalidRouteData) as exc:
                raise DirectionsError(f"Malformed geocoding result for '{address}'") from exc

        return await self._retry(f"geocode '{address}'", attempt)

    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        """Driving route between two coordinates."""

        async def attempt() -> Dict[str, Any]:
            try:
                data = await self._get_json(
                    self.directions_url,
                    {
                        "api_key": self.api_key,
                        "start": f"{origin.lon},{origin.lat}",
                        "end": f"{destination.lon},{destination.lat}",
                    },
                )
            except (httpx.HTTPError, ValueError) as exc:
                raise DirectionsError(f"Directions request failed: {exc}") from exc
            features = data.get("features") if isinstance(data, dict) else None
            if not features:
                raise DirectionsError("No route found")
            return features[0]

        started = time.time()
        feature = await self._retry("directions", attempt)
        route = Route.from_feature(feature)
        logger.info(
            f"[Directions] Route with {len(route.geometry)} points, {len(route.steps)} steps, "
            f"{route.total_distance_meters / 1000:.1f} km in {(time.time() - started) * 1000:.0f} ms"
        )
        return route

    async def get_route(self, from_address: str, to_address: str) -> Route:
        origin = await self.geocode(from_address)
        destination = await self.geocode(to_address)
        return await self.fetch_route(origin, destination)

    def get_stats(self) -> Dict[str, int]:
        return self._stats.copy()

    async def close(self) -> None:
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
