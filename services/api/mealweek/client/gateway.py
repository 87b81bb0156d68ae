"""HTTP gateway from the planner client to the MealWeek API.

Works with any `requests.Session`-like object (get/post/put/delete returning
responses with `status_code` and `json()`), which lets tests hand in a
FastAPI TestClient.
"""

import logging
from datetime import date
from typing import Any, Optional

import requests

from ..core.calendar import day_key
from ..core.dish import PlannedDish
from ..settings import settings

logger = logging.getLogger("mealweek.client")

DEFAULT_TIMEOUT = 10.0

# Sentinel for "leave this field alone" in partial updates
UNSET: Any = object()


class PlannerApiError(Exception):
    def __init__(self, status_code: int, detail: str = ""):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class UnauthorizedError(PlannerApiError):
    """No valid session; the user has to sign in again."""


class PlannerApi:
    def __init__(
        self,
        base_url: str = "",
        session=None,
        identity: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        if identity:
            self.session.headers[settings.identity_header] = identity

    # --- dishes ---

    def list_dishes(self) -> list[PlannedDish]:
        data = self._request("GET", "/api/dishes")
        return [PlannedDish.from_json(item) for item in data]

    def create_dish(self, name: str, day: date, link: Optional[str] = None, image: Optional[str] = None) -> PlannedDish:
        body = {"name": name, "link": link, "date": day_key(day)}
        if image:
            body["image"] = image
        return PlannedDish.from_json(self._request("POST", "/api/dishes", json=body))

    def update_dish(self, dish_id: str, *, name=UNSET, link=UNSET, day=UNSET, order=UNSET) -> PlannedDish:
        """PUT only the fields that were passed."""
        body: dict[str, Any] = {"id": dish_id}
        if name is not UNSET:
            body["name"] = name
        if link is not UNSET:
            body["link"] = link
        if day is not UNSET:
            body["date"] = day_key(day)
        if order is not UNSET:
            body["order"] = order
        return PlannedDish.from_json(self._request("PUT", "/api/dishes", json=body))

    def delete_dish(self, dish_id: str) -> None:
        self._request("DELETE", f"/api/dishes/{dish_id}")

    # --- notes ---

    def get_note(self, week_start: date) -> str:
        data = self._request("GET", "/api/notes", params={"date": day_key(week_start)})
        return data.get("content") or ""

    def save_note(self, week_start: date, content: str) -> str:
        data = self._request("POST", "/api/notes", json={"date": day_key(week_start), "content": content})
        return data.get("content") or ""

    # --- internals ---

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        resp = self.session.request(method, url, timeout=self.timeout, **kwargs)

        if resp.status_code == 401:
            raise UnauthorizedError(401, "Unauthorized")
        if resp.status_code >= 400:
            raise PlannerApiError(resp.status_code, _error_detail(resp))
        return resp.json()


def _error_detail(resp) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text
    if isinstance(payload, dict):
        return str(payload.get("detail") or payload.get("error") or payload)
    return str(payload)
