"""
Thin async client for the Strava REST API.
One bearer-authenticated request per operation; non-2xx responses raise StravaAPIError.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

STRAVA_API_BASE_URL = "https://www.strava.com/api/v3"


class StravaAPIError(Exception):
    def __init__(self, message: str, status: int, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.errors = errors


def _page_params(page: Optional[int], per_page: Optional[int]) -> Dict[str, Any]:
    params = {}
    if page:
        params["page"] = page
    if per_page:
        params["per_page"] = per_page
    return params


class StravaClient:
    def __init__(self, access_token: str, api_url: str = STRAVA_API_BASE_URL, timeout: float = 30.0):
        self.access_token = access_token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """Make a request to the Strava API and return the decoded JSON body."""
        headers = {"Authorization": f"Bearer {self.access_token}"}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.request(
                method=method,
                url=f"{self.api_url}{path}",
                headers=headers,
                params=params or None,
                json=body,
            )

        if not response.is_success:
            message = f"Strava API error: {response.status_code}"
            errors = None
            try:
                error_data = response.json()
                message = error_data.get("message") or message
                errors = error_data.get("errors")
            except (ValueError, AttributeError):
                message = response.text or message

            logger.warning(f"Strava API {method} {path} failed ({response.status_code}): {message}")
            raise StravaAPIError(message, response.status_code, errors)

        if response.status_code == 204:
            return {}

        return response.json()

    # ========== Athlete ==========

    async def get_authenticated_athlete(self) -> Dict[str, Any]:
        return await self.request("GET", "/athlete")

    async def get_athlete_stats(self, athlete_id: int) -> Dict[str, Any]:
        return await self.request("GET", f"/athletes/{athlete_id}/stats")

    # ========== Activities ==========

    async def get_activity(self, activity_id: int, include_all_efforts: bool = False) -> Dict[str, Any]:
        params = {"include_all_efforts": "true"} if include_all_efforts else None
        return await self.request("GET", f"/activities/{activity_id}", params=params)

    async def list_athlete_activities(
        self,
        before: Optional[int] = None,
        after: Optional[int] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = {}
        if before:
            params["before"] = before
        if after:
            params["after"] = after
        params.update(_page_params(page, per_page))
        return await self.request("GET", "/athlete/activities", params=params)

    async def create_activity(
        self,
        name: str,
        sport_type: str,
        start_date_local: str,
        elapsed_time: int,
        description: Optional[str] = None,
        distance: Optional[float] = None,
        trainer: Optional[bool] = None,
        commute: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Create a manual activity. Strava takes these as query parameters."""
        params = {
            "name": name,
            "sport_type": sport_type,
            "start_date_local": start_date_local,
            "elapsed_time": elapsed_time,
        }
        if description:
            params["description"] = description
        if distance:
            params["distance"] = distance
        if trainer is not None:
            params["trainer"] = 1 if trainer else 0
        if commute is not None:
            params["commute"] = 1 if commute else 0
        return await self.request("POST", "/activities", params=params)

    async def update_activity(self, activity_id: int, **fields: Any) -> Dict[str, Any]:
        body = {key: value for key, value in fields.items() if value is not None}
        return await self.request("PUT", f"/activities/{activity_id}", body=body)

    async def get_activity_laps(self, activity_id: int) -> List[Dict[str, Any]]:
        return await self.request("GET", f"/activities/{activity_id}/laps")

    async def get_activity_comments(
        self, activity_id: int, page: Optional[int] = None, per_page: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self.request("GET", f"/activities/{activity_id}/comments", params=_page_params(page, per_page))

    async def get_activity_kudos(
        self, activity_id: int, page: Optional[int] = None, per_page: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self.request("GET", f"/activities/{activity_id}/kudos", params=_page_params(page, per_page))

    # ========== Segments ==========

    async def get_segment(self, segment_id: int) -> Dict[str, Any]:
        return await self.request("GET", f"/segments/{segment_id}")

    async def star_segment(self, segment_id: int, starred: bool) -> Dict[str, Any]:
        return await self.request("PUT", f"/segments/{segment_id}/starred", body={"starred": starred})

    async def list_starred_segments(
        self, page: Optional[int] = None, per_page: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self.request("GET", "/segments/starred", params=_page_params(page, per_page))

    async def explore_segments(
        self,
        bounds: Tuple[float, float, float, float],
        activity_type: Optional[str] = None,
        min_cat: Optional[int] = None,
        max_cat: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Find segments within [south_west_lat, south_west_lng, north_east_lat, north_east_lng]."""
        params = {"bounds": ",".join(str(b) for b in bounds)}
        if activity_type:
            params["activity_type"] = activity_type
        if min_cat is not None:
            params["min_cat"] = min_cat
        if max_cat is not None:
            params["max_cat"] = max_cat
        return await self.request("GET", "/segments/explore", params=params)

    # ========== Clubs ==========

    async def get_club(self, club_id: int) -> Dict[str, Any]:
        return await self.request("GET", f"/clubs/{club_id}")

    async def list_athlete_clubs(
        self, page: Optional[int] = None, per_page: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self.request("GET", "/athlete/clubs", params=_page_params(page, per_page))

    async def list_club_members(
        self, club_id: int, page: Optional[int] = None, per_page: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self.request("GET", f"/clubs/{club_id}/members", params=_page_params(page, per_page))

    async def list_club_activities(
        self, club_id: int, page: Optional[int] = None, per_page: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self.request("GET", f"/clubs/{club_id}/activities", params=_page_params(page, per_page))

    # ========== Routes ==========

    async def get_route(self, route_id: int) -> Dict[str, Any]:
        return await self.request("GET", f"/routes/{route_id}")

    async def list_athlete_routes(
        self, athlete_id: int, page: Optional[int] = None, per_page: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self.request("GET", f"/athletes/{athlete_id}/routes", params=_page_params(page, per_page))

    # ========== Gear ==========

    async def get_gear(self, gear_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/gear/{gear_id}")
