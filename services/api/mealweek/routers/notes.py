import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.calendar import week_start
from ..db import get_db
from ..deps import get_current_user
from ..models import User, WeeklyNote
from ..schemas import NoteSave, NoteOut

logger = logging.getLogger("mealweek.notes")

router = APIRouter()


def _find_note(db: Session, user_id: str, monday: date) -> Optional[WeeklyNote]:
    return db.query(WeeklyNote).filter(
        WeeklyNote.user_id == user_id,
        WeeklyNote.week_start == monday,
    ).first()


@router.get("/notes", response_model=NoteOut)
def get_note(
    date: Optional[date] = Query(None, description="Any day of the week (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Note for the week containing `date`; empty content if none saved yet."""
    if date is None:
        raise HTTPException(status_code=400, detail="Missing required field: date")

    monday = week_start(date)
    note = _find_note(db, user.id, monday)

    return NoteOut(week_start=monday, content=note.content if note else "")


@router.post("/notes", response_model=NoteOut)
def save_note(
    payload: NoteSave,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Create or update the note for the week containing `date`."""
    if payload.date is None:
        raise HTTPException(status_code=400, detail="Missing required field: date")

    monday = week_start(payload.date)
    content = payload.content or ""

    note = _find_note(db, user.id, monday)
    if note:
        note.content = content
    else:
        note = WeeklyNote(user_id=user.id, week_start=monday, content=content)
        db.add(note)

    try:
        db.commit()
    except IntegrityError:
        # Another save created this week's note first; update that row instead
        db.rollback()
        logger.info(f"Note for week {monday} created concurrently for user {user.id}, updating it")
        note = _find_note(db, user.id, monday)
        note.content = content
        db.commit()
    db.refresh(note)
    logger.info(f"Saved note for week {monday} ({len(content)} chars) for user {user.id}")
    return NoteOut(week_start=note.week_start, content=note.content)
