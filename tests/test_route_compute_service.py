"""
Wayfinder API — Route Compute Tests
====================================

What:  Tests for RouteComputeService and the GraphHopperClient it drives.
How:   GraphHopper is replaced by the FakeGraphHopper MockTransport from
       conftest; assertions cover both the normalized output and the
       exact query sent upstream.
"""

import pytest

from wayfinder.exceptions import RoutingEngineError, ValidationError
from wayfinder.services.graphhopper_client import GraphHopperClient
from tests.conftest import GRAPHHOPPER_URL, SAMPLE_POLYLINE


class TestComputeValidation:
    """Request checks that fail before GraphHopper is called."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("locations", [None, [], [{"poiId": "poi_acropolis"}], "two"])
    async def test_fewer_than_two_locations(self, compute_service, fake_graphhopper, locations):
        """Anything short of two locations is rejected before GraphHopper is called."""
        with pytest.raises(ValidationError) as exc_info:
            await compute_service.compute({"locations": locations})

        assert exc_info.value.message == "locations must be an array with at least 2 items."
        assert exc_info.value.context == {"minItems": 2}
        assert fake_graphhopper.requests == []

    @pytest.mark.asyncio
    async def test_unknown_poi_reports_index_and_id(self, compute_service, fake_graphhopper):
        """An unknown poiId names its position and value."""
        with pytest.raises(ValidationError) as exc_info:
            await compute_service.compute(
                {"locations": [{"poiId": "poi_acropolis"}, {"poiId": "missing"}]}
            )

        assert exc_info.value.message == "Unknown poiId or POI missing coordinates."
        assert exc_info.value.context == {"index": 1, "poiId": "missing"}
        assert fake_graphhopper.requests == []

    @pytest.mark.asyncio
    async def test_poi_without_coordinates_is_unresolvable(self, compute_service):
        """A known POI without coordinates cannot be routed through."""
        with pytest.raises(ValidationError) as exc_info:
            await compute_service.compute(
                {"locations": [{"poiId": "poi_nowhere"}, {"lat": 1, "lon": 2}]}
            )
        assert exc_info.value.context == {"index": 0, "poiId": "poi_nowhere"}

    @pytest.mark.asyncio
    async def test_location_without_poi_or_coordinates(self, compute_service):
        """A location needs a poiId or numeric lat/lon."""
        with pytest.raises(ValidationError) as exc_info:
            await compute_service.compute(
                {"locations": [{"lat": 1, "lon": 2}, {"lat": "x", "lon": 2}]}
            )

        assert exc_info.value.message == "Each location must have either poiId or lat/lon."
        assert exc_info.value.context == {"index": 1, "location": {"lat": "x", "lon": 2}}

    @pytest.mark.asyncio
    async def test_location_must_be_an_object(self, compute_service):
        """Array entries that are not objects are rejected by index."""
        with pytest.raises(ValidationError) as exc_info:
            await compute_service.compute({"locations": [{"lat": 1, "lon": 2}, [1, 2]]})
        assert exc_info.value.context == {"index": 1}

    @pytest.mark.asyncio
    async def test_unsupported_format(self, compute_service):
        """Only geojson and encodedpolyline are accepted."""
        with pytest.raises(ValidationError) as exc_info:
            await compute_service.compute(
                {"locations": [{"lat": 1, "lon": 2}, {"lat": 3, "lon": 4}], "format": "gpx"}
            )
        assert exc_info.value.context == {"format": "gpx"}


class TestComputeSuccess:
    """Normalized output of a successful computation."""

    @pytest.mark.asyncio
    async def test_geojson_route_from_pois(self, compute_service, fake_graphhopper):
        """Distance, time and geometry come from paths[0]."""
        result = await compute_service.compute(
            {"locations": [{"poiId": "poi_syntagma"}, {"poiId": "poi_acropolis"}]}
        )

        assert result.distance_meters == 1523.4
        assert result.duration_millis == 301000
        assert result.geometry.type == "LineString"
        assert len(result.geometry.coordinates) == 2
        assert [(p.poi_id, p.name) for p in result.poi_sequence] == [
            ("poi_syntagma", "Syntagma Square"),
            ("poi_acropolis", "Acropolis"),
        ]

    @pytest.mark.asyncio
    async def test_raw_coordinates_are_not_in_poi_sequence(self, compute_service):
        """poiSequence lists only POI-backed locations."""
        result = await compute_service.compute(
            {"locations": [{"lat": 37.98, "lon": 23.72}, {"poiId": "poi_museum"}]}
        )
        assert [p.poi_id for p in result.poi_sequence] == ["poi_museum"]

    @pytest.mark.asyncio
    async def test_upstream_query_parameters(self, compute_service, fake_graphhopper):
        """Points are sent as lat,lon in order with the fixed flags."""
        await compute_service.compute({
            "locations": [{"poiId": "poi_acropolis"}, {"lat": "38.0", "lon": 23.8}],
            "vehicle": "foot",
        })

        request = fake_graphhopper.requests[0]
        assert request.url.path == "/route"
        params = request.url.params
        assert params.get_list("point") == ["37.9715,23.7257", "38.0,23.8"]
        assert params["profile"] == "foot"
        assert params["instructions"] == "false"
        assert params["calc_points"] == "true"
        assert params["points_encoded"] == "false"

    @pytest.mark.asyncio
    async def test_encoded_polyline_format(self, compute_service, fake_graphhopper):
        """encodedpolyline asks for and returns an encoded string."""
        result = await compute_service.compute({
            "locations": [{"lat": 1, "lon": 2}, {"lat": 3, "lon": 4}],
            "format": "encodedpolyline",
        })

        assert result.geometry == SAMPLE_POLYLINE
        assert fake_graphhopper.requests[0].url.params["points_encoded"] == "true"

    @pytest.mark.asyncio
    async def test_missing_distance_and_time_default_to_zero(self, compute_service, fake_graphhopper):
        """Absent distance/time read as zero."""
        fake_graphhopper.body = {
            "paths": [{"points": {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}}]
        }
        result = await compute_service.compute(
            {"locations": [{"lat": 0, "lon": 0}, {"lat": 1, "lon": 1}]}
        )
        assert result.distance_meters == 0.0
        assert result.duration_millis == 0


class TestComputeUpstreamFailures:
    """GraphHopper failures surface as graphhopper_error."""

    LOCATIONS = {"locations": [{"lat": 0, "lon": 0}, {"lat": 1, "lon": 1}]}

    @pytest.mark.asyncio
    async def test_upstream_error_status(self, compute_service, fake_graphhopper):
        """A GraphHopper 5xx becomes 502 with the upstream body."""
        fake_graphhopper.status_code = 500
        fake_graphhopper.body = {"message": "Cannot find point 0"}

        with pytest.raises(RoutingEngineError) as exc_info:
            await compute_service.compute(self.LOCATIONS)

        assert exc_info.value.status_code == 502
        assert exc_info.value.context == {
            "status": 500,
            "graphhopper": {"message": "Cannot find point 0"},
        }

    @pytest.mark.asyncio
    async def test_geojson_requested_but_polyline_returned(self, compute_service, fake_graphhopper):
        """The wrong geometry encoding is an engine error."""
        fake_graphhopper.body = {"paths": [{"distance": 1, "time": 1, "points": SAMPLE_POLYLINE}]}

        with pytest.raises(RoutingEngineError) as exc_info:
            await compute_service.compute(self.LOCATIONS)

        assert exc_info.value.context == {"path.points": SAMPLE_POLYLINE}

    @pytest.mark.asyncio
    async def test_polyline_requested_but_missing(self, compute_service, fake_graphhopper):
        """A path without points is an engine error."""
        fake_graphhopper.body = {"paths": [{"distance": 1, "time": 1}]}

        with pytest.raises(RoutingEngineError) as exc_info:
            await compute_service.compute({**self.LOCATIONS, "format": "encodedpolyline"})

        assert exc_info.value.context == {"path.points": None}


class TestGraphHopperClient:
    """Transport-level behavior of the client itself."""

    @pytest.mark.asyncio
    async def test_transport_error_has_status_zero(self, fake_graphhopper):
        """Connection failures report upstream status 0."""
        fake_graphhopper.error = "connection refused"
        client = GraphHopperClient(GRAPHHOPPER_URL, transport=fake_graphhopper.transport)

        with pytest.raises(RoutingEngineError) as exc_info:
            await client.route([(0, 0), (1, 1)])

        assert exc_info.value.upstream_status == 0
        assert exc_info.value.context["status"] == 0
        assert exc_info.value.context["graphhopper"]["error"].startswith("transport_error:")

    @pytest.mark.asyncio
    async def test_non_json_body_is_truncated(self, fake_graphhopper):
        """Non-JSON bodies are echoed, capped at 2000 characters."""
        fake_graphhopper.status_code = 503
        fake_graphhopper.body = "<html>" + "x" * 5000
        client = GraphHopperClient(GRAPHHOPPER_URL, transport=fake_graphhopper.transport)

        with pytest.raises(RoutingEngineError) as exc_info:
            await client.route([(0, 0), (1, 1)])

        details = exc_info.value.context
        assert details["status"] == 503
        assert details["graphhopper"]["error"] == "invalid_json_from_graphhopper"
        assert len(details["graphhopper"]["raw"]) == 2000

    @pytest.mark.asyncio
    async def test_success_without_paths_is_an_error(self, fake_graphhopper):
        """A 200 with no paths is still a failure."""
        fake_graphhopper.body = {"paths": []}
        client = GraphHopperClient(GRAPHHOPPER_URL, transport=fake_graphhopper.transport)

        with pytest.raises(RoutingEngineError) as exc_info:
            await client.route([(0, 0), (1, 1)])

        assert exc_info.value.context == {"status": 200, "graphhopper": {"paths": []}}

    @pytest.mark.asyncio
    async def test_trailing_slash_in_base_url(self, fake_graphhopper):
        """A trailing slash in the base URL does not double up."""
        client = GraphHopperClient(GRAPHHOPPER_URL + "/", transport=fake_graphhopper.transport)
        await client.route([(0, 0), (1, 1)])
        assert str(fake_graphhopper.requests[0].url).startswith(GRAPHHOPPER_URL + "/route?")

    @pytest.mark.asyncio
    async def test_health_check(self, fake_graphhopper):
        """Health is true only for a reachable 2xx /health."""
        client = GraphHopperClient(GRAPHHOPPER_URL, transport=fake_graphhopper.transport)
        assert await client.health_check() is True

        fake_graphhopper.health_status = 503
        assert await client.health_check() is False

        fake_graphhopper.error = "down"
        assert await client.health_check() is False
