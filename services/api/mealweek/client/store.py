"""Planner state store: the client's copy of the user's dishes and the weekly
note for the week on screen.

Mutations are optimistic: local state changes first, then the change is sent
to the API. A failed write is logged and left as is (no rollback); the next
poll brings the server's view back. Polling is last-fetch-wins.
"""

import logging
import threading
from datetime import date
from typing import Callable, Iterable, Optional

import requests

from ..core.calendar import DayLike, as_date, format_week_range, shift_weeks, week_days, week_start
from ..core.dish import PlannedDish
from ..core.drag import DropOutcome
from ..core.reorder import assign_lane_order, changed_orders, next_order, sort_lane
from .gateway import PlannerApi, PlannerApiError, UnauthorizedError, UNSET

logger = logging.getLogger("mealweek.client.store")

POLL_INTERVAL_SECONDS = 10.0

# Errors that leave the store usable; anything else propagates
RECOVERABLE_ERRORS = (PlannerApiError, requests.RequestException)


class PlannerStore:
    def __init__(
        self,
        api: PlannerApi,
        reference: Optional[DayLike] = None,
        on_change: Optional[Callable[[str], None]] = None,
    ):
        self.api = api
        self.reference: date = as_date(reference) if reference is not None else date.today()
        self.on_change = on_change
        self.dishes: list[PlannedDish] = []
        self.note: str = ""
        self.clipboard: Optional[PlannedDish] = None
        self.needs_sign_in = False

    # --- week view ---

    @property
    def week_start(self) -> date:
        return week_start(self.reference)

    @property
    def week_days(self) -> list[date]:
        return week_days(self.week_start)

    @property
    def week_label(self) -> str:
        return format_week_range(self.week_start)

    def dishes_for_day(self, day: DayLike) -> list[PlannedDish]:
        target = as_date(day)
        return sort_lane(d for d in self.dishes if d.date == target)

    def get(self, dish_id: str) -> Optional[PlannedDish]:
        return next((d for d in self.dishes if d.id == dish_id), None)

    def next_week(self) -> None:
        self.go_to(shift_weeks(self.reference, 1))

    def previous_week(self) -> None:
        self.go_to(shift_weeks(self.reference, -1))

    def go_to(self, day: DayLike) -> None:
        self.reference = as_date(day)
        self.load_note()

    # --- server sync ---

    def load(self) -> None:
        self._fetch_dishes(polling=False)
        self.load_note()

    def refresh(self) -> bool:
        """Poll once. Returns True when the server's list replaced ours."""
        return self._fetch_dishes(polling=True)

    def load_note(self) -> None:
        with self._guard("fetch note"):
            self.note = self.api.get_note(self.week_start)

    def _fetch_dishes(self, polling: bool) -> bool:
        with self._guard("fetch dishes") as guard:
            fetched = self.api.list_dishes()
        if guard.failed:
            return False

        if fetched == self.dishes:
            return False
        self.dishes = fetched
        if polling:
            self._notify("refreshed")
        return True

    # --- mutations ---

    def add_dish(self, name: str, day: DayLike, link: Optional[str] = None) -> Optional[PlannedDish]:
        """Create on the server first; the id comes back with the new dish."""
        created = None
        with self._guard("save dish"):
            created = self.api.create_dish(name, as_date(day), link=link or None)
        if created is not None:
            self.dishes.append(created)
            self._notify("added")
        return created

    def edit_dish(self, dish_id: str, *, name=UNSET, link=UNSET, day=UNSET) -> Optional[PlannedDish]:
        dish = self.get(dish_id)
        if dish is None:
            return None

        changes = {}
        if name is not UNSET:
            changes["name"] = name
        if link is not UNSET:
            changes["link"] = link or None
        if day is not UNSET:
            day = as_date(day)
            changes["date"] = day
        if not changes:
            return dish

        updated = self._replace(dish.with_changes(**changes))
        self._notify("edited")
        with self._guard("update dish"):
            self.api.update_dish(dish_id, name=name, link=changes.get("link", UNSET), day=day)
        return updated

    def move_dish(self, dish_id: str, day: DayLike) -> Optional[PlannedDish]:
        """Cross-day move: append to the target day, source day untouched."""
        dish = self.get(dish_id)
        target = as_date(day)
        if dish is None or dish.date == target:
            return dish

        order = next_order(self.dishes_for_day(target))
        moved = self._replace(dish.with_changes(date=target, order=order))
        self._notify("moved")
        with self._guard("update dish date"):
            self.api.update_dish(dish_id, day=target, order=order)
        return moved

    def reorder_day(self, ordered: Iterable[PlannedDish]) -> list[PlannedDish]:
        """Apply a new in-day sequence; persists only dishes whose order changed."""
        before = list(ordered)
        lane = assign_lane_order(before)
        current = [self.get(d.id) or d for d in before]
        affected = changed_orders(current, lane)

        for dish in lane:
            self._replace(dish)
        if affected:
            self._notify("reordered")

        # Sequential, one write per dish; a failure does not stop the rest
        for dish in affected:
            with self._guard("persist order"):
                self.api.update_dish(dish.id, order=dish.order)
        return lane

    def remove_dish(self, dish_id: str) -> bool:
        dish = self.get(dish_id)
        if dish is None:
            return False
        self.dishes = [d for d in self.dishes if d.id != dish_id]
        self._notify("removed")
        with self._guard("delete dish"):
            self.api.delete_dish(dish_id)
        return True

    def copy_dish(self, dish_id: str) -> Optional[PlannedDish]:
        self.clipboard = self.get(dish_id)
        return self.clipboard

    def paste(self, day: DayLike) -> Optional[PlannedDish]:
        """Add a copy of the clipboard dish to `day` and clear the clipboard."""
        source = self.clipboard
        if source is None:
            return None
        self.clipboard = None
        return self.add_dish(source.name, day, link=source.link)

    def apply_drop(self, outcome: Optional[DropOutcome]) -> Optional[PlannedDish]:
        """Feed a finished drag gesture into the store."""
        if outcome is None or not outcome.is_move:
            return None
        return self.move_dish(outcome.dish_id, outcome.target_day)

    def save_note(self, content: str) -> None:
        with self._guard("save note") as guard:
            self.api.save_note(self.week_start, content)
        if not guard.failed:
            self.note = content

    # --- internals ---

    def _replace(self, dish: PlannedDish) -> PlannedDish:
        self.dishes = [dish if d.id == dish.id else d for d in self.dishes]
        return dish

    def _notify(self, event: str) -> None:
        if self.on_change is not None:
            self.on_change(event)

    def _guard(self, action: str) -> "_ApiGuard":
        return _ApiGuard(self, action)


class _ApiGuard:
    """Context manager turning recoverable API errors into log lines."""

    def __init__(self, store: PlannerStore, action: str):
        self.store = store
        self.action = action
        self.failed = False

    def __enter__(self) -> "_ApiGuard":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            return False
        if isinstance(exc, UnauthorizedError):
            # never retried; the UI routes to sign-in
            self.failed = True
            self.store.needs_sign_in = True
            logger.warning(f"Failed to {self.action}: not signed in")
            return True
        if isinstance(exc, RECOVERABLE_ERRORS):
            self.failed = True
            logger.error(f"Failed to {self.action}: {exc}")
            return True
        return False


class PlannerPoller:
    """Refreshes a store at a fixed interval on a background thread."""

    def __init__(self, store: PlannerStore, interval: float = POLL_INTERVAL_SECONDS):
        self.store = store
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> bool:
        return self.store.refresh()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="planner-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            if self.store.needs_sign_in:
                logger.info("Stopping poller: sign-in required")
                break
            self.tick()
