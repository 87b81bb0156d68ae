"""Order bookkeeping for dishes within a day ("lane").

In-lane reorder is a total reassignment: each dish gets its index in the new
sequence, so a lane is always densely ranked 0..n-1 afterwards.

Cross-day moves append to the target lane and leave the source lane alone;
its gap closes on the next in-lane reorder.
"""

from typing import Iterable, Sequence

from .dish import PlannedDish


def sort_lane(dishes: Iterable[PlannedDish]) -> list[PlannedDish]:
    # stable: equal orders keep their incoming sequence
    return sorted(dishes, key=lambda d: d.order or 0)


def assign_lane_order(dishes: Sequence[PlannedDish]) -> list[PlannedDish]:
    return [
        dish if dish.order == index else dish.with_changes(order=index)
        for index, dish in enumerate(dishes)
    ]


def changed_orders(before: Iterable[PlannedDish], after: Iterable[PlannedDish]) -> list[PlannedDish]:
    """Dishes from `after` whose order differs from their `before` value."""
    previous = {d.id: d.order for d in before}
    return [d for d in after if previous.get(d.id) != d.order]


def move_within_lane(dishes: Sequence[PlannedDish], dish_id: str, new_index: int) -> list[PlannedDish]:
    """New lane sequence with `dish_id` moved to `new_index` (clamped)."""
    lane = list(dishes)
    current = next((i for i, d in enumerate(lane) if d.id == dish_id), None)
    if current is None:
        raise KeyError(dish_id)
    dish = lane.pop(current)
    new_index = max(0, min(new_index, len(lane)))
    lane.insert(new_index, dish)
    return lane


def next_order(lane: Iterable[PlannedDish]) -> int:
    """Order for a dish appended to the end of `lane`."""
    orders = [d.order or 0 for d in lane]
    return max(orders) + 1 if orders else 0
