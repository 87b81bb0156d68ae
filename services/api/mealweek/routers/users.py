import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from ..db import get_db
from ..deps import get_current_user, get_identity_email
from ..models import User
from ..schemas import UserOut, UserUpsert

logger = logging.getLogger("mealweek.users")

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserOut)
def read_me(user: User = Depends(get_current_user)):
    return user


@router.post("/me", response_model=UserOut)
def upsert_me(
    data: UserUpsert,
    db: Session = Depends(get_db),
    email: str = Depends(get_identity_email),
):
    """Create the user record for a signed-in identity, or refresh its profile.

    Called once per sign-in, in the role of the identity provider's adapter.
    """
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email)
        db.add(user)
        logger.info(f"Registering user for {email}")

    if data.name is not None:
        user.name = data.name
    if data.image is not None:
        user.image = data.image

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="User already exists")
    db.refresh(user)
    return user
