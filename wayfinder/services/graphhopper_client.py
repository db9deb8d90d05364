"""
Wayfinder API — GraphHopper Client
===================================

What:  Thin async HTTP client for the GraphHopper /route endpoint.
Why:   Keeps transport concerns (URL building, timeouts, status/JSON checks)
       out of the compute service.
How:   One GET per computation; no retries. Every failure mode becomes a
       RoutingEngineError carrying the upstream status (0 if the request
       never completed) and the upstream payload for diagnostics.

Request shape:
    GET {base_url}/route?point=lat,lon&point=lat,lon&profile=car
        &instructions=false&calc_points=true&points_encoded=false
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from wayfinder.exceptions import RoutingEngineError

logger = logging.getLogger(__name__)

# Raw upstream bodies are echoed in error details; cap their size
MAX_RAW_BODY = 2000


class GraphHopperClient:
    """
    Args:
        base_url:  GraphHopper base URL (no trailing slash).
        timeout:   Seconds for connect and for the whole request.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=timeout),
            transport=self.transport,
        )

    async def route(
        self,
        points: List[Tuple[float, float]],
        profile: str = "car",
        points_encoded: bool = False,
    ) -> Dict[str, Any]:
        """
        Request a route through `points` ((lat, lon) pairs, in order).

        Returns:
            The first path object (paths[0]) of the GraphHopper response.

        Raises:
            RoutingEngineError: transport failure/timeout, non-JSON body,
                non-2xx status, or no paths[0] in the body.
        """
        params: List[Tuple[str, str]] = [("point", f"{lat},{lon}") for lat, lon in points]
        params += [
            ("profile", profile),
            ("instructions", "false"),
            ("calc_points", "true"),
            ("points_encoded", "true" if points_encoded else "false"),
        ]

        try:
            async with self._client(self.timeout) as client:
                # httpx timeouts are per phase; wait_for bounds the whole exchange
                resp = await asyncio.wait_for(
                    client.get(f"{self.base_url}/route", params=params),
                    timeout=self.timeout,
                )
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            reason = str(e) or type(e).__name__
            logger.warning("GraphHopper request failed: %s", reason)
            raise RoutingEngineError(
                upstream_status=0,
                context={"status": 0, "graphhopper": {"error": f"transport_error: {reason}"}},
            )

        try:
            body = resp.json()
        except ValueError:
            logger.warning("GraphHopper returned non-JSON body (status %d)", resp.status_code)
            raise RoutingEngineError(
                upstream_status=resp.status_code,
                context={
                    "status": resp.status_code,
                    "graphhopper": {
                        "error": "invalid_json_from_graphhopper",
                        "raw": resp.text[:MAX_RAW_BODY],
                    },
                },
            )

        paths = body.get("paths") if isinstance(body, dict) else None
        if not resp.is_success or not isinstance(paths, list) or not paths or not isinstance(paths[0], dict):
            logger.warning(
                "GraphHopper error (status %d): %s",
                resp.status_code,
                body.get("message") if isinstance(body, dict) else body,
            )
            raise RoutingEngineError(
                upstream_status=resp.status_code,
                context={"status": resp.status_code, "graphhopper": body},
            )

        return paths[0]

    async def health_check(self) -> bool:
        """True if GraphHopper answers its /health endpoint with 2xx."""
        try:
            async with self._client(5.0) as client:
                resp = await client.get(f"{self.base_url}/health")
            return resp.is_success
        except httpx.HTTPError as e:
            logger.debug("GraphHopper health check failed: %s", e)
            return False
