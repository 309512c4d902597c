import json

import httpx
import pytest
import respx

from strava_mcp.strava_api import STRAVA_API_BASE_URL, StravaAPIError, StravaClient


@pytest.fixture
def strava():
    return StravaClient("access-token")


class TestStravaClient:

    @respx.mock
    @pytest.mark.asyncio
    async def test_bearer_auth_and_json(self, strava):
        route = respx.get(f"{STRAVA_API_BASE_URL}/athlete").mock(
            return_value=httpx.Response(200, json={"id": 1})
        )

        assert await strava.get_authenticated_athlete() == {"id": 1}
        assert route.calls.last.request.headers["authorization"] == "Bearer access-token"

    @respx.mock
    @pytest.mark.asyncio
    async def test_no_content_is_empty_payload(self, strava):
        respx.put(f"{STRAVA_API_BASE_URL}/segments/7/starred").mock(return_value=httpx.Response(204))
        assert await strava.star_segment(7, True) == {}

    @respx.mock
    @pytest.mark.asyncio
    async def test_error_carries_status_and_field_errors(self, strava):
        errors = [{"resource": "Activity", "field": "id", "code": "not found"}]
        respx.get(f"{STRAVA_API_BASE_URL}/activities/99").mock(
            return_value=httpx.Response(404, json={"message": "Record Not Found", "errors": errors})
        )

        with pytest.raises(StravaAPIError) as exc_info:
            await strava.get_activity(99)

        assert exc_info.value.status == 404
        assert exc_info.value.message == "Record Not Found"
        assert exc_info.value.errors == errors

    @respx.mock
    @pytest.mark.asyncio
    async def test_error_with_text_body(self, strava):
        respx.get(f"{STRAVA_API_BASE_URL}/athlete").mock(return_value=httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(StravaAPIError) as exc_info:
            await strava.get_authenticated_athlete()

        assert exc_info.value.status == 502
        assert exc_info.value.message == "Bad Gateway"
        assert exc_info.value.errors is None

    @respx.mock
    @pytest.mark.asyncio
    async def test_error_with_empty_body(self, strava):
        respx.get(f"{STRAVA_API_BASE_URL}/athlete").mock(return_value=httpx.Response(500))

        with pytest.raises(StravaAPIError) as exc_info:
            await strava.get_authenticated_athlete()

        assert exc_info.value.message == "Strava API error: 500"

    @respx.mock
    @pytest.mark.asyncio
    async def test_list_activities_params(self, strava):
        route = respx.get(f"{STRAVA_API_BASE_URL}/athlete/activities").mock(
            return_value=httpx.Response(200, json=[])
        )

        await strava.list_athlete_activities(after=1700000000, per_page=50)

        params = dict(route.calls.last.request.url.params)
        assert params == {"after": "1700000000", "per_page": "50"}

    @respx.mock
    @pytest.mark.asyncio
    async def test_create_activity_sends_query_params(self, strava):
        route = respx.post(f"{STRAVA_API_BASE_URL}/activities").mock(
            return_value=httpx.Response(201, json={"id": 5})
        )

        await strava.create_activity(
            name="Lunch Run",
            sport_type="Run",
            start_date_local="2024-01-15T10:00:00Z",
            elapsed_time=1800,
            distance=5000.0,
            trainer=False,
        )

        params = dict(route.calls.last.request.url.params)
        assert params["name"] == "Lunch Run"
        assert params["elapsed_time"] == "1800"
        assert params["trainer"] == "0"
        assert "commute" not in params
        assert "description" not in params

    @respx.mock
    @pytest.mark.asyncio
    async def test_update_activity_drops_unset_fields(self, strava):
        route = respx.put(f"{STRAVA_API_BASE_URL}/activities/5").mock(
            return_value=httpx.Response(200, json={"id": 5})
        )

        await strava.update_activity(5, name="Renamed", description=None, commute=True)

        assert json.loads(route.calls.last.request.content) == {"name": "Renamed", "commute": True}

    @respx.mock
    @pytest.mark.asyncio
    async def test_explore_segments_bounds(self, strava):
        route = respx.get(f"{STRAVA_API_BASE_URL}/segments/explore").mock(
            return_value=httpx.Response(200, json={"segments": []})
        )

        await strava.explore_segments((37.7, -122.5, 37.8, -122.4), activity_type="running", min_cat=0)

        params = dict(route.calls.last.request.url.params)
        assert params["bounds"] == "37.7,-122.5,37.8,-122.4"
        assert params["activity_type"] == "running"
        assert params["min_cat"] == "0"
        assert "max_cat" not in params
