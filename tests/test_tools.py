import pytest

from strava_mcp.strava_api import StravaAPIError, StravaClient
from strava_mcp.tools import (
    build_mcp_server,
    format_distance,
    format_duration,
    format_speed,
    handle_error,
    pick_activity,
    pick_athlete,
    pick_segment,
)

EXPECTED_TOOLS = {
    "get_athlete",
    "get_athlete_stats",
    "list_activities",
    "get_activity",
    "create_activity",
    "update_activity",
    "get_activity_laps",
    "get_activity_comments",
    "get_activity_kudos",
    "get_segment",
    "list_starred_segments",
    "explore_segments",
    "star_segment",
    "list_clubs",
    "get_club",
    "list_club_members",
    "list_club_activities",
    "get_route",
    "list_athlete_routes",
    "get_gear",
}


@pytest.mark.parametrize("meters, expected", [
    (12345.6, "12.35 km"),
    (1000, "1.00 km"),
    (999.4, "999 m"),
    (0, "0 m"),
    (None, None),
])
def test_format_distance(meters, expected):
    assert format_distance(meters) == expected


@pytest.mark.parametrize("seconds, expected", [
    (3723, "1h 2m 3s"),
    (3600, "1h 0m 0s"),
    (125, "2m 5s"),
    (59, "59s"),
    (0, "0s"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_format_speed():
    assert format_speed(2.5) == "9.0 km/h"
    assert format_speed(None) is None


def test_pick_activity():
    activity = {
        "id": 1,
        "name": "Morning Run",
        "type": "Run",
        "sport_type": "TrailRun",
        "distance": 10500.0,
        "moving_time": 3125,
        "total_elevation_gain": 220.5,
        "start_date_local": "2024-05-01T07:00:00Z",
        "kudos_count": 3,
        "comment_count": 1,
        "achievement_count": 2,
        "average_speed": 3.36,
        "max_speed": 5.0,
        "map": {"summary_polyline": "abc"},
    }

    picked = pick_activity(activity)

    assert picked["type"] == "TrailRun"
    assert picked["distance"] == "10.50 km"
    assert picked["moving_time"] == "52m 5s"
    assert picked["elevation_gain"] == "220.5 m"
    assert picked["avg_speed"] == "12.1 km/h"
    assert picked["max_speed"] == "18.0 km/h"
    assert picked["calories"] is None
    assert "map" not in picked


def test_pick_athlete_joins_name():
    assert pick_athlete({"id": 1, "firstname": "Ada", "lastname": "Lovelace"})["name"] == "Ada Lovelace"


def test_pick_segment():
    picked = pick_segment({
        "id": 9,
        "name": "Hill",
        "distance": 850.0,
        "average_grade": 6.1,
        "maximum_grade": 12.0,
        "elevation_low": 10.0,
        "elevation_high": 62.0,
    })
    assert picked["distance"] == "850 m"
    assert picked["avg_grade"] == "6.1%"
    assert picked["elevation"] == "10.0m - 62.0m"


def test_handle_strava_error():
    error = StravaAPIError("Record Not Found", 404, [{"resource": "Activity", "field": "id", "code": "not found"}])
    message = handle_error(error)
    assert message.startswith("Strava API Error (404): Record Not Found")
    assert '"resource": "Activity"' in message


def test_handle_other_error():
    assert handle_error(RuntimeError("boom")) == "Error: boom"


@pytest.mark.asyncio
async def test_all_tools_registered():
    server = build_mcp_server(StravaClient("tok"))
    tools = await server.list_tools()

    assert {tool.name for tool in tools} == EXPECTED_TOOLS


@pytest.mark.asyncio
async def test_tool_schemas_keep_parameter_names():
    server = build_mcp_server(StravaClient("tok"))
    tools = {tool.name: tool for tool in await server.list_tools()}

    explore = tools["explore_segments"].inputSchema
    assert set(explore["required"]) == {"south_west_lat", "south_west_lng", "north_east_lat", "north_east_lng"}

    activity = tools["get_activity"].inputSchema
    assert activity["required"] == ["id"]
    assert "include_all_efforts" in activity["properties"]

    assert tools["get_athlete"].inputSchema.get("required", []) == []
