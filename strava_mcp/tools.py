"""
MCP Tool Definitions for the Strava API.
Each tool wraps one StravaClient call and returns pretty-printed JSON text
with the interesting fields picked out and formatted for the agent.
"""
import functools
import json
import logging
from typing import Annotated, Any, Dict, Literal, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings
from pydantic import Field

from .strava_api import StravaAPIError, StravaClient

logger = logging.getLogger(__name__)

SERVER_NAME = "strava"

Page = Annotated[Optional[int], Field(description="Page number")]
PerPage = Annotated[Optional[int], Field(description="Items per page")]


def format_result(data: Any) -> str:
    return json.dumps(data, indent=2)


def format_distance(meters: Optional[float]) -> Optional[str]:
    if meters is None:
        return None
    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{meters:.0f} m"


def format_duration(seconds: Optional[float]) -> Optional[str]:
    """Format seconds into Xh Ym Zs string."""
    if seconds is None:
        return None
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_speed(meters_per_second: Optional[float]) -> Optional[str]:
    if meters_per_second is None:
        return None
    return f"{meters_per_second * 3.6:.1f} km/h"


def pick_athlete(athlete: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": athlete.get("id"),
        "username": athlete.get("username"),
        "name": f"{athlete.get('firstname')} {athlete.get('lastname')}",
        "city": athlete.get("city"),
        "country": athlete.get("country"),
        "premium": athlete.get("premium"),
        "profile": athlete.get("profile"),
    }


def pick_activity(activity: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": activity.get("id"),
        "name": activity.get("name"),
        "type": activity.get("sport_type") or activity.get("type"),
        "distance": format_distance(activity.get("distance")),
        "moving_time": format_duration(activity.get("moving_time")),
        "elevation_gain": f"{activity.get('total_elevation_gain')} m",
        "start_date": activity.get("start_date_local"),
        "kudos": activity.get("kudos_count"),
        "comments": activity.get("comment_count"),
        "achievements": activity.get("achievement_count"),
        "avg_speed": format_speed(activity.get("average_speed")),
        "max_speed": format_speed(activity.get("max_speed")),
        "calories": activity.get("calories"),
        "description": activity.get("description"),
    }


def pick_segment(segment: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": segment.get("id"),
        "name": segment.get("name"),
        "activity_type": segment.get("activity_type"),
        "distance": format_distance(segment.get("distance")),
        "avg_grade": f"{segment.get('average_grade')}%",
        "max_grade": f"{segment.get('maximum_grade')}%",
        "elevation": f"{segment.get('elevation_low')}m - {segment.get('elevation_high')}m",
        "climb_category": segment.get("climb_category"),
        "city": segment.get("city"),
        "country": segment.get("country"),
        "starred": segment.get("starred"),
    }


def pick_club(club: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": club.get("id"),
        "name": club.get("name"),
        "sport_type": club.get("sport_type"),
        "city": club.get("city"),
        "country": club.get("country"),
        "member_count": club.get("member_count"),
        "private": club.get("private"),
        "verified": club.get("verified"),
        "url": club.get("url"),
    }


def pick_route(route: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": route.get("id"),
        "name": route.get("name"),
        "distance": format_distance(route.get("distance")),
        "elevation_gain": f"{route.get('elevation_gain')} m",
        "description": route.get("description"),
        "private": route.get("private"),
        "starred": route.get("starred"),
    }


def handle_error(error: Exception) -> str:
    if isinstance(error, StravaAPIError):
        message = f"Strava API Error ({error.status}): {error.message}"
        if error.errors:
            message += f"\nErrors: {json.dumps(error.errors)}"
        return message
    return f"Error: {error}"


def reports_errors(func):
    """Turn failures into a text result so the agent sees them instead of a protocol error."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs) -> str:
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            logger.warning(f"Tool {func.__name__} failed: {e}")
            return handle_error(e)
    return wrapper


def build_mcp_server(client: StravaClient) -> FastMCP:
    """Create a stateless MCP server whose tools all act with the given client's credentials."""
    mcp = FastMCP(
        name=SERVER_NAME,
        stateless_http=True,
        json_response=True,
        # No Host header allow-list
        transport_security=TransportSecuritySettings(enable_dns_rebinding_protection=False),
    )

    # ========== Athlete Tools ==========

    @mcp.tool(title="Get Authenticated Athlete")
    @reports_errors
    async def get_athlete() -> str:
        """Get the currently authenticated athlete's profile"""
        return format_result(pick_athlete(await client.get_authenticated_athlete()))

    @mcp.tool(title="Get Athlete Stats")
    @reports_errors
    async def get_athlete_stats(
        athlete_id: Annotated[int, Field(description="The athlete ID")],
    ) -> str:
        """Get activity statistics for the authenticated athlete"""
        return format_result(await client.get_athlete_stats(athlete_id))

    # ========== Activity Tools ==========

    @mcp.tool(title="List Activities")
    @reports_errors
    async def list_activities(
        before: Annotated[Optional[int], Field(description="Unix timestamp to filter activities before this time")] = None,
        after: Annotated[Optional[int], Field(description="Unix timestamp to filter activities after this time")] = None,
        page: Annotated[Optional[int], Field(description="Page number (default: 1)")] = None,
        per_page: Annotated[Optional[int], Field(description="Number of items per page (default: 30, max: 200)")] = None,
    ) -> str:
        """List the authenticated athlete's activities"""
        activities = await client.list_athlete_activities(before=before, after=after, page=page, per_page=per_page)
        return format_result([pick_activity(a) for a in activities])

    @mcp.tool(title="Get Activity")
    @reports_errors
    async def get_activity(
        id: Annotated[int, Field(description="The activity ID")],
        include_all_efforts: Annotated[Optional[bool], Field(description="Include all segment efforts")] = None,
    ) -> str:
        """Get detailed information about a specific activity"""
        return format_result(pick_activity(await client.get_activity(id, bool(include_all_efforts))))

    @mcp.tool(title="Create Activity")
    @reports_errors
    async def create_activity(
        name: Annotated[str, Field(description="Activity name")],
        sport_type: Annotated[str, Field(description="Sport type (e.g., Run, Ride, Swim, Hike, Walk, Workout)")],
        start_date_local: Annotated[str, Field(description="ISO 8601 formatted date time (e.g., 2024-01-15T10:00:00Z)")],
        elapsed_time: Annotated[int, Field(description="Activity duration in seconds")],
        description: Annotated[Optional[str], Field(description="Activity description")] = None,
        distance: Annotated[Optional[float], Field(description="Distance in meters")] = None,
        trainer: Annotated[Optional[bool], Field(description="Whether this was a trainer activity")] = None,
        commute: Annotated[Optional[bool], Field(description="Whether this was a commute")] = None,
    ) -> str:
        """Create a manual activity"""
        activity = await client.create_activity(
            name=name,
            sport_type=sport_type,
            start_date_local=start_date_local,
            elapsed_time=elapsed_time,
            description=description,
            distance=distance,
            trainer=trainer,
            commute=commute,
        )
        return format_result(pick_activity(activity))

    @mcp.tool(title="Update Activity")
    @reports_errors
    async def update_activity(
        id: Annotated[int, Field(description="The activity ID")],
        name: Annotated[Optional[str], Field(description="New activity name")] = None,
        sport_type: Annotated[Optional[str], Field(description="New sport type")] = None,
        description: Annotated[Optional[str], Field(description="New description")] = None,
        gear_id: Annotated[Optional[str], Field(description="Gear ID to associate")] = None,
        trainer: Annotated[Optional[bool], Field(description="Whether this was a trainer activity")] = None,
        commute: Annotated[Optional[bool], Field(description="Whether this was a commute")] = None,
    ) -> str:
        """Update an existing activity"""
        activity = await client.update_activity(
            id,
            name=name,
            sport_type=sport_type,
            description=description,
            gear_id=gear_id,
            trainer=trainer,
            commute=commute,
        )
        return format_result(pick_activity(activity))

    @mcp.tool(title="Get Activity Laps")
    @reports_errors
    async def get_activity_laps(
        id: Annotated[int, Field(description="The activity ID")],
    ) -> str:
        """Get laps for an activity"""
        return format_result(await client.get_activity_laps(id))

    @mcp.tool(title="Get Activity Comments")
    @reports_errors
    async def get_activity_comments(
        id: Annotated[int, Field(description="The activity ID")],
        page: Page = None,
        per_page: PerPage = None,
    ) -> str:
        """Get comments on an activity"""
        return format_result(await client.get_activity_comments(id, page=page, per_page=per_page))

    @mcp.tool(title="Get Activity Kudos")
    @reports_errors
    async def get_activity_kudos(
        id: Annotated[int, Field(description="The activity ID")],
        page: Page = None,
        per_page: PerPage = None,
    ) -> str:
        """Get kudos on an activity"""
        return format_result(await client.get_activity_kudos(id, page=page, per_page=per_page))

    # ========== Segment Tools ==========

    @mcp.tool(title="Get Segment")
    @reports_errors
    async def get_segment(
        id: Annotated[int, Field(description="The segment ID")],
    ) -> str:
        """Get details about a specific segment"""
        return format_result(pick_segment(await client.get_segment(id)))

    @mcp.tool(title="List Starred Segments")
    @reports_errors
    async def list_starred_segments(page: Page = None, per_page: PerPage = None) -> str:
        """List the authenticated athlete's starred segments"""
        segments = await client.list_starred_segments(page=page, per_page=per_page)
        return format_result([pick_segment(s) for s in segments])

    @mcp.tool(title="Explore Segments")
    @reports_errors
    async def explore_segments(
        south_west_lat: Annotated[float, Field(description="Southwest corner latitude")],
        south_west_lng: Annotated[float, Field(description="Southwest corner longitude")],
        north_east_lat: Annotated[float, Field(description="Northeast corner latitude")],
        north_east_lng: Annotated[float, Field(description="Northeast corner longitude")],
        activity_type: Annotated[Optional[Literal["running", "riding"]], Field(description="Filter by activity type")] = None,
        min_cat: Annotated[Optional[int], Field(description="Minimum climb category (0-5)")] = None,
        max_cat: Annotated[Optional[int], Field(description="Maximum climb category (0-5)")] = None,
    ) -> str:
        """Find popular segments within a geographic area"""
        result = await client.explore_segments(
            (south_west_lat, south_west_lng, north_east_lat, north_east_lng),
            activity_type=activity_type,
            min_cat=min_cat,
            max_cat=max_cat,
        )
        return format_result([pick_segment(s) for s in result.get("segments", [])])

    @mcp.tool(title="Star/Unstar Segment")
    @reports_errors
    async def star_segment(
        id: Annotated[int, Field(description="The segment ID")],
        starred: Annotated[bool, Field(description="Whether to star (true) or unstar (false)")],
    ) -> str:
        """Star or unstar a segment"""
        return format_result(pick_segment(await client.star_segment(id, starred)))

    # ========== Club Tools ==========

    @mcp.tool(title="List Athlete Clubs")
    @reports_errors
    async def list_clubs(page: Page = None, per_page: PerPage = None) -> str:
        """List clubs the authenticated athlete is a member of"""
        clubs = await client.list_athlete_clubs(page=page, per_page=per_page)
        return format_result([pick_club(c) for c in clubs])

    @mcp.tool(title="Get Club")
    @reports_errors
    async def get_club(
        id: Annotated[int, Field(description="The club ID")],
    ) -> str:
        """Get details about a specific club"""
        return format_result(pick_club(await client.get_club(id)))

    @mcp.tool(title="List Club Members")
    @reports_errors
    async def list_club_members(
        id: Annotated[int, Field(description="The club ID")],
        page: Page = None,
        per_page: PerPage = None,
    ) -> str:
        """List members of a club"""
        members = await client.list_club_members(id, page=page, per_page=per_page)
        return format_result([pick_athlete(m) for m in members])

    @mcp.tool(title="List Club Activities")
    @reports_errors
    async def list_club_activities(
        id: Annotated[int, Field(description="The club ID")],
        page: Page = None,
        per_page: PerPage = None,
    ) -> str:
        """List recent activities from club members"""
        activities = await client.list_club_activities(id, page=page, per_page=per_page)
        return format_result([pick_activity(a) for a in activities])

    # ========== Route Tools ==========

    @mcp.tool(title="Get Route")
    @reports_errors
    async def get_route(
        id: Annotated[int, Field(description="The route ID")],
    ) -> str:
        """Get details about a specific route"""
        return format_result(pick_route(await client.get_route(id)))

    @mcp.tool(title="List Athlete Routes")
    @reports_errors
    async def list_athlete_routes(
        athlete_id: Annotated[int, Field(description="The athlete ID")],
        page: Page = None,
        per_page: PerPage = None,
    ) -> str:
        """List routes created by an athlete"""
        routes = await client.list_athlete_routes(athlete_id, page=page, per_page=per_page)
        return format_result([pick_route(r) for r in routes])

    # ========== Gear Tools ==========

    @mcp.tool(title="Get Gear")
    @reports_errors
    async def get_gear(
        id: Annotated[str, Field(description="The gear ID")],
    ) -> str:
        """Get details about a specific piece of gear"""
        return format_result(await client.get_gear(id))

    return mcp
