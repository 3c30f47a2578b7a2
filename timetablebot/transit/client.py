"""Async client for the public transport connections API."""

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from ..storage.models import User
from ..utils.exceptions import TransitError

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_LIMIT = 5
WALK_LABEL = "Fussweg"


class TransitResponse(BaseModel):
    """Upstream status and JSON body, passed through unchanged."""

    status_code: int
    payload: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class TransitClient:
    """Async HTTP client for connection searches."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        app_name: str = "TimetableBot",
    ):
        """Initialize transit client.

        Args:
            base_url: API base URL, e.g. ``https://transport.opendata.ch/v1``
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used to fake the API in tests)
            app_name: Application name sent in the User-Agent header
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._app_name = app_name
        self.client: Optional[httpx.AsyncClient] = None

        logger.debug("Transit client initialized for %s", self.base_url)

    async def __aenter__(self) -> "TransitClient":
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client exists."""
        if self.client is None or self.client.is_closed:
            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
                headers={
                    "User-Agent": f"{self._app_name}/1.0.0 Transit-Client",
                    "Accept": "application/json",
                },
            )
        return self.client

    async def close(self) -> None:
        """Close HTTP client."""
        if self.client is not None and not self.client.is_closed:
            await self.client.aclose()
        self.client = None

    async def search_connections(
        self,
        origin: str,
        destination: str,
        date: Optional[str] = None,
        time: Optional[str] = None,
        is_arrival_time: bool = False,
    ) -> TransitResponse:
        """Search connections between two places.

        Args:
            origin: Station name or street address to depart from
            destination: Station name or street address to arrive at
            date: Travel date (YYYY-MM-DD)
            time: Travel time (HH:MM)
            is_arrival_time: Treat ``time`` as the desired arrival time

        Returns:
            TransitResponse with the upstream status and JSON body

        Raises:
            TransitError: If the API cannot be reached or returns a non-JSON body
        """
        params = {
            "from": origin,
            "to": destination,
            "date": date,
            "time": time,
            "isArrivalTime": "1" if is_arrival_time else "0",
        }
        params = {key: value for key, value in params.items() if value}

        client = await self._ensure_client()
        try:
            response = await client.get("/connections", params=params)
        except httpx.TimeoutException as e:
            logger.error("Timeout querying transit API: %s", e)
            raise TransitError(f"Transit API timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error("Network error querying transit API: %s", e)
            raise TransitError(f"Transit API unreachable: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("Transit API returned non-JSON body (status %d)", response.status_code)
            raise TransitError(
                "Transit API returned an invalid response", status_code=response.status_code
            ) from e

        logger.debug(
            "Transit search %r -> %r returned status %d",
            origin,
            destination,
            response.status_code,
        )
        return TransitResponse(status_code=response.status_code, payload=payload)


def _clock_time(timestamp: Optional[str]) -> Optional[str]:
    """Cut ``HH:MM`` out of an ISO timestamp, passing other values through."""
    if timestamp and len(timestamp) >= 16:
        return timestamp[11:16]
    return timestamp


def _section_label(section: dict[str, Any]) -> Optional[str]:
    journey = section.get("journey") or {}
    if journey.get("category"):
        return journey["category"]
    if section.get("walk"):
        return WALK_LABEL
    return None


def summarize_connections(
    payload: Any, limit: int = DEFAULT_CONNECTION_LIMIT
) -> list[dict[str, Any]]:
    """Flatten the first ``limit`` connections into display-ready dicts."""
    if not isinstance(payload, dict):
        return []

    summary = []
    for connection in (payload.get("connections") or [])[:limit]:
        departure = connection.get("from") or {}
        arrival = connection.get("to") or {}
        transport = [
            label
            for label in (_section_label(section) for section in connection.get("sections") or [])
            if label
        ]
        summary.append(
            {
                "from": (departure.get("station") or {}).get("name"),
                "to": (arrival.get("station") or {}).get("name"),
                "departure": _clock_time(departure.get("departure")),
                "arrival": _clock_time(arrival.get("arrival")),
                "duration": connection.get("duration"),
                "transport": transport,
                "price": connection.get("price"),
            }
        )
    return summary


def format_user_address(user: User) -> Optional[str]:
    """Format a user's address as ``"<street> <no>, <postal code> <city>"``."""
    street_line = " ".join(part for part in (user.street, user.house_number) if part)
    city_line = " ".join(part for part in (user.postal_code, user.city) if part)
    address = ", ".join(part for part in (street_line, city_line) if part)
    return address or None
