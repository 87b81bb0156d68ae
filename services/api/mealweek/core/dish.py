"""Client-side dish record shared by the drag engine, reorder helpers and store."""

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Optional

from .calendar import as_date, day_key


@dataclass(frozen=True)
class PlannedDish:
    id: str
    name: str
    date: date
    image: str = ""
    link: Optional[str] = None
    order: int = 0

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "PlannedDish":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            date=as_date(data["date"]),
            image=data.get("image") or "",
            link=data.get("link") or None,
            # absent/null order ranks as 0
            order=data.get("order") or 0,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "link": self.link,
            "image": self.image,
            "date": day_key(self.date),
            "order": self.order,
        }

    def with_changes(self, **changes) -> "PlannedDish":
        return replace(self, **changes)
