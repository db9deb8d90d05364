"""
Wayfinder API — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Services run over in-memory stores and a fake GraphHopper built on
       httpx.MockTransport, so no files, network or running engine are needed.

Fixture Hierarchy:
    ├── sample_pois:     small POI collection around Athens
    ├── poi_store:       MemoryStore seeded with sample_pois
    ├── route_store:     empty MemoryStore for persisted routes
    ├── fake_graphhopper: scriptable GraphHopper stand-in
    ├── routing_engine:  GraphHopperClient wired to fake_graphhopper
    ├── TEAM:            roster served by /about
    ├── poi_service / route_service / compute_service
    ├── app:             create_app() over all of the above, auth disabled
    └── test_client:     httpx AsyncClient talking to `app` in-process
"""

import os
import tempfile

# Isolate from any real .env / data directory BEFORE wayfinder is imported
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="wayfinder_test_")
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["GRAPHHOPPER_URL"] = "http://graphhopper.test"

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from wayfinder.config import Settings  # noqa: E402
from wayfinder.services.graphhopper_client import GraphHopperClient  # noqa: E402
from wayfinder.services.poi_service import PoiService  # noqa: E402
from wayfinder.services.route_compute_service import RouteComputeService  # noqa: E402
from wayfinder.services.route_repository import RouteRepository  # noqa: E402
from wayfinder.services.route_service import RouteService  # noqa: E402
from wayfinder.storage import MemoryStore  # noqa: E402

GRAPHHOPPER_URL = "http://graphhopper.test"

SAMPLE_POLYLINE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"

VALID_GEOMETRY = {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}

TEAM = [{"id": "P2018020", "name": "Nestoras Kosmidis", "role": None}]


class FakeGraphHopper:
    """
    Scriptable GraphHopper stand-in.

    By default answers /route with one path whose `points` match the
    requested encoding. Set `status_code`, `body` or `error` to script
    failures; every received request is kept in `requests`.
    """

    def __init__(self):
        self.status_code = 200
        self.body = None
        self.error = None
        self.health_status = 200
        self.requests = []

    def default_body(self, request: httpx.Request):
        encoded = request.url.params.get("points_encoded") == "true"
        points = (
            SAMPLE_POLYLINE
            if encoded
            else {"type": "LineString", "coordinates": [[23.7275, 37.9838], [23.7257, 37.9715]]}
        )
        return {"paths": [{"distance": 1523.4, "time": 301000, "points": points}]}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise httpx.ConnectError(self.error, request=request)
        if request.url.path == "/health":
            return httpx.Response(self.health_status, text="OK")
        body = self.body if self.body is not None else self.default_body(request)
        if isinstance(body, (dict, list)):
            return httpx.Response(self.status_code, json=body)
        return httpx.Response(self.status_code, text=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def sample_pois():
    return [
        {
            "id": "poi_acropolis",
            "name": "Acropolis",
            "category": "Monument",
            "description": "Ancient citadel above Athens",
            "location": {"lat": 37.9715, "lon": 23.7257},
        },
        {
            "id": "poi_syntagma",
            "name": "Syntagma Square",
            "category": "Square",
            "description": "Central square facing the Parliament",
            "location": {"lat": 37.9755, "lon": 23.7348},
        },
        {
            "id": "poi_museum",
            "name": "National Archaeological Museum",
            "category": "museum",
            "description": "Greek antiquities",
            "location": {"lat": 37.9890, "lon": 23.7323},
        },
        {
            "id": "poi_thessaloniki",
            "name": "White Tower",
            "category": "Monument",
            "description": "Landmark of Thessaloniki",
            "location": {"lat": 40.6264, "lon": 22.9484},
        },
        {
            "id": "poi_nowhere",
            "name": "Unmapped Cafe",
            "category": "Cafe",
            "description": "Location not surveyed yet",
        },
    ]


@pytest.fixture
def poi_store(sample_pois):
    return MemoryStore(sample_pois)


@pytest.fixture
def route_store():
    return MemoryStore()


@pytest.fixture
def fake_graphhopper():
    return FakeGraphHopper()


@pytest.fixture
def routing_engine(fake_graphhopper):
    return GraphHopperClient(GRAPHHOPPER_URL, timeout=5.0, transport=fake_graphhopper.transport)


@pytest.fixture
def poi_service(poi_store):
    return PoiService(poi_store)


@pytest.fixture
def route_service(route_store):
    return RouteService(RouteRepository(route_store))


@pytest.fixture
def compute_service(poi_service, routing_engine):
    return RouteComputeService(poi_service, routing_engine)


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        data_dir=str(tmp_path),
        auth_enabled=False,
        graphhopper_url=GRAPHHOPPER_URL,
        log_level="WARNING",
    )


@pytest.fixture
def app(test_settings, poi_store, route_store, routing_engine):
    from wayfinder.main import create_app

    return create_app(
        test_settings,
        poi_store=poi_store,
        route_store=route_store,
        users_store=MemoryStore(),
        team_store=MemoryStore(TEAM),
        routing_engine=routing_engine,
    )


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the ASGI app (no server).

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
