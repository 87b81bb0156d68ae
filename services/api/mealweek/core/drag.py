"""Drag reassignment engine.

Tracks one drag gesture of a dish card and decides which day-row it lands on.
All geometry is in viewport coordinates (what `getBoundingClientRect` and
pointer `clientX/clientY` report), so scroll offsets never enter the math.

Lifecycle per gesture:
    IDLE -> PRESSED -> DRAGGING -> DROPPED | CANCELLED

Hit testing: the dragged card's center is compared against each row's
vertical center; the nearest row wins if it is within the snap threshold.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Optional, Sequence, Union

from .dish import PlannedDish

logger = logging.getLogger("mealweek.drag")

SNAP_THRESHOLD = 48.0  # px
DRAG_START_THRESHOLD = 5.0  # px of pointer travel before a press becomes a drag
CLICK_DEBOUNCE_SECONDS = 0.1


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return Point(self.left + self.width / 2, self.top + self.height / 2)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)


@dataclass(frozen=True)
class DayRowTarget:
    """A day-row drop target as currently laid out."""
    day: date
    rect: Rect

    @property
    def center_y(self) -> float:
        return self.rect.center.y


class DragState(str, Enum):
    IDLE = "idle"
    PRESSED = "pressed"
    DRAGGING = "dragging"
    DROPPED = "dropped"
    CANCELLED = "cancelled"


class DropKind(str, Enum):
    MOVE = "move"  # lands on another day
    STAY = "stay"  # same day or outside every row; in-lane reorder applies


@dataclass(frozen=True)
class DropOutcome:
    dish_id: str
    source_day: date
    target_day: Optional[date]
    kind: DropKind

    @property
    def is_move(self) -> bool:
        return self.kind is DropKind.MOVE


class DragStateError(RuntimeError):
    pass


def find_closest_row(
    center_y: float,
    rows: Sequence[DayRowTarget],
    threshold: float = SNAP_THRESHOLD,
) -> Optional[DayRowTarget]:
    """Nearest row by vertical center distance, or None beyond `threshold`.

    Ties go to the earliest row in `rows`.
    """
    closest = None
    min_distance = math.inf
    for row in rows:
        distance = abs(center_y - row.center_y)
        if distance < min_distance:
            min_distance = distance
            closest = row

    if closest is not None and min_distance <= threshold:
        return closest
    return None


RowsSource = Union[Sequence[DayRowTarget], Callable[[], Sequence[DayRowTarget]]]


class DragSession:
    """State machine for a single drag gesture.

    `rows` is either a fixed sequence or a callable re-enumerating the rows on
    every pointer event (layout can shift while dragging). `on_hover` receives
    the hovered day, or None, on every move while dragging.
    """

    def __init__(
        self,
        rows: RowsSource,
        on_hover: Optional[Callable[[Optional[date]], None]] = None,
        snap_threshold: float = SNAP_THRESHOLD,
        start_threshold: float = DRAG_START_THRESHOLD,
        click_debounce: float = CLICK_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._rows = rows
        self._on_hover = on_hover
        self.snap_threshold = snap_threshold
        self.start_threshold = start_threshold
        self.click_debounce = click_debounce
        self._clock = clock

        self.state = DragState.IDLE
        self.dish: Optional[PlannedDish] = None
        self.offset: Optional[Point] = None
        self.frozen_size: Optional[Size] = None
        self.hover: Optional[DayRowTarget] = None
        self._press_point: Optional[Point] = None
        self._dropped_at: Optional[float] = None

    # --- transitions ---

    def press(self, dish: PlannedDish, pointer: Point, card_rect: Rect, container_size: Optional[Size] = None) -> None:
        """Pointer down on a card; becomes a drag once it travels far enough."""
        self._reset_gesture()
        self.state = DragState.PRESSED
        self.dish = dish
        self._press_point = pointer
        # Offset and size are taken at press time, before anything moves
        self.offset = card_rect.center - pointer
        self.frozen_size = container_size

    def begin(self, dish: PlannedDish, pointer: Point, card_rect: Rect, container_size: Optional[Size] = None) -> None:
        """Explicit drag-start signal from the card."""
        self.press(dish, pointer, card_rect, container_size)
        self.state = DragState.DRAGGING
        logger.debug(f"Drag started for dish {dish.id}")

    def move(self, pointer: Point) -> Optional[DayRowTarget]:
        if self.state is DragState.PRESSED:
            if pointer.distance_to(self._press_point) < self.start_threshold:
                return None
            self.state = DragState.DRAGGING
            logger.debug(f"Press promoted to drag for dish {self.dish.id}")

        if self.state is not DragState.DRAGGING:
            return None

        self.hover = self._hit_test(pointer)
        self._emit_hover(self.hover.day if self.hover else None)
        return self.hover

    def release(self, pointer: Point) -> Optional[DropOutcome]:
        """Pointer up. Returns None for a plain tap or an idle session."""
        if self.state is DragState.PRESSED:
            # Never moved far enough: a tap, the card's click stays live
            self._reset_gesture()
            return None

        if self.state is not DragState.DRAGGING:
            return None

        dish = self.dish
        target = self._hit_test(pointer)
        self.state = DragState.DROPPED
        self.hover = None
        self.frozen_size = None
        self._dropped_at = self._clock()
        self._emit_hover(None)

        if target is not None and target.day != dish.date:
            logger.info(f"Dish {dish.id} dropped on {target.day} (from {dish.date})")
            return DropOutcome(dish.id, dish.date, target.day, DropKind.MOVE)

        return DropOutcome(dish.id, dish.date, target.day if target else None, DropKind.STAY)

    def cancel(self) -> None:
        if self.state in (DragState.PRESSED, DragState.DRAGGING):
            was_dragging = self.state is DragState.DRAGGING
            self.state = DragState.CANCELLED
            self.hover = None
            self.frozen_size = None
            if was_dragging:
                self._emit_hover(None)

    # --- queries ---

    @property
    def is_dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    def card_center(self, pointer: Point) -> Point:
        if self.offset is None:
            raise DragStateError("No gesture in progress")
        return pointer + self.offset

    def allows_click(self) -> bool:
        """False while a drag is live and briefly after a drop."""
        if self.state is DragState.DRAGGING:
            return False
        if self._dropped_at is None:
            return True
        return (self._clock() - self._dropped_at) >= self.click_debounce

    # --- internals ---

    def _hit_test(self, pointer: Point) -> Optional[DayRowTarget]:
        rows = self._rows() if callable(self._rows) else self._rows
        return find_closest_row(self.card_center(pointer).y, rows, self.snap_threshold)

    def _emit_hover(self, day: Optional[date]) -> None:
        if self._on_hover is not None:
            self._on_hover(day)

    def _reset_gesture(self) -> None:
        self.state = DragState.IDLE
        self.dish = None
        self.offset = None
        self.frozen_size = None
        self.hover = None
        self._press_point = None
