"""Pydantic schemas for the MealWeek API.

Request/response models for:
- Users
- Dishes
- Weekly notes
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel


# --- User ---

class UserUpsert(BaseModel):
    name: Optional[str] = None
    image: Optional[str] = None


class UserOut(BaseModel):
    id: str
    email: str
    name: Optional[str]
    image: Optional[str]
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


# --- Dish ---

# Required fields are optional here so missing ones come back as a 400
# naming the field rather than a generic validation error.

class DishCreate(BaseModel):
    name: Optional[str] = None
    link: Optional[str] = None
    date: Optional[dt.date] = None
    image: Optional[str] = None


class DishUpdate(BaseModel):
    """Partial update. Fields left out of the body are not touched;
    use `model_fields_set` to tell them apart from explicit nulls."""
    id: Optional[str] = None
    name: Optional[str] = None
    link: Optional[str] = None
    date: Optional[dt.date] = None
    order: Optional[int] = None


class DishOut(BaseModel):
    id: str
    name: str
    link: Optional[str]
    image: str
    date: dt.date
    order: int
    userId: str

    class Config:
        from_attributes = True

    @classmethod
    def from_dish(cls, dish) -> "DishOut":
        return cls(
            id=dish.id,
            name=dish.name,
            link=dish.link,
            image=dish.image,
            date=dish.date,
            order=dish.order or 0,
            userId=dish.user_id,
        )


class DishDeleted(BaseModel):
    deleted: str


# --- Weekly note ---

class NoteSave(BaseModel):
    date: Optional[dt.date] = None
    content: Optional[str] = None


class NoteOut(BaseModel):
    week_start: dt.date
    content: str
