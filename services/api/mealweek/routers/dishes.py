import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_current_user, get_image_resolver
from ..limits import limiter
from ..models import Dish, User
from ..schemas import DishCreate, DishUpdate, DishOut, DishDeleted
from ..services.image_resolver import ImageResolver
from ..settings import settings

logger = logging.getLogger("mealweek.dishes")

router = APIRouter()


def _missing(field: str) -> HTTPException:
    return HTTPException(status_code=400, detail=f"Missing required field: {field}")


def _get_owned_dish(db: Session, dish_id: str, user: User) -> Dish:
    # Someone else's dish is reported exactly like a missing one
    dish = db.query(Dish).filter(Dish.id == dish_id, Dish.user_id == user.id).first()
    if not dish:
        raise HTTPException(status_code=404, detail="Dish not found")
    return dish


@router.get("/dishes", response_model=List[DishOut])
def list_dishes(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """All of the user's dishes, by day then in-day order."""
    dishes = (
        db.query(Dish)
        .filter(Dish.user_id == user.id)
        .order_by(Dish.date.asc(), Dish.order.asc(), Dish.created_at.asc(), Dish.id.asc())
        .all()
    )
    return [DishOut.from_dish(d) for d in dishes]


@router.post("/dishes", response_model=DishOut)
@limiter.limit(settings.dish_create_rate_limit)
def create_dish(
    request: Request,
    payload: DishCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    resolver: ImageResolver = Depends(get_image_resolver),
):
    """Create a dish, resolving an image when none is supplied."""
    name = (payload.name or "").strip()
    if not name:
        raise _missing("name")
    if payload.date is None:
        raise _missing("date")

    link = (payload.link or "").strip() or None
    image = resolver.resolve(name, link=link, image=(payload.image or "").strip() or None)

    dish = Dish(
        user_id=user.id,
        name=name,
        link=link,
        image=image,
        date=payload.date,
        order=0,
    )
    db.add(dish)
    db.commit()
    db.refresh(dish)

    logger.info(f"Created dish {dish.id} on {dish.date} for user {user.id}")
    return DishOut.from_dish(dish)


@router.put("/dishes", response_model=DishOut)
def update_dish(
    update: DishUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Partial update; only fields present in the body are written."""
    if not update.id:
        raise _missing("id")

    dish = _get_owned_dish(db, update.id, user)
    sent = update.model_fields_set

    if "name" in sent:
        name = (update.name or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Field 'name' cannot be empty")
        dish.name = name

    if "link" in sent:
        dish.link = (update.link or "").strip() or None

    if "date" in sent:
        if update.date is None:
            raise HTTPException(status_code=400, detail="Field 'date' cannot be null")
        dish.date = update.date

    if "order" in sent:
        dish.order = update.order or 0

    db.commit()
    db.refresh(dish)
    return DishOut.from_dish(dish)


@router.delete("/dishes/{dish_id}", response_model=DishDeleted)
def delete_dish(
    dish_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    dish = _get_owned_dish(db, dish_id, user)
    db.delete(dish)
    db.commit()
    logger.info(f"Deleted dish {dish_id} for user {user.id}")
    return DishDeleted(deleted=dish_id)
