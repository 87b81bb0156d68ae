"""FastAPI dependencies for the MealWeek API.

Provides:
- Identity resolution from the identity provider's forwarded header
- Current user lookup (401 without identity, 404 without a user record)
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .db import get_db
from .models import User
from .settings import settings


def get_identity_email(request: Request) -> str:
    """Verified email forwarded by the identity provider.

    Raises:
        HTTPException 401 when the header is missing or blank
    """
    email: Optional[str] = request.headers.get(settings.identity_header)
    if not email or not email.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return email.strip().lower()


def get_current_user(
    db: Session = Depends(get_db),
    email: str = Depends(get_identity_email),
) -> User:
    """Resolve the authenticated identity to its user record.

    Raises:
        HTTPException 404 if the identity has no user record yet
    """
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def get_image_resolver():
    """Image resolver built from settings; overridden in tests."""
    from .services.image_resolver import ImageResolver
    return ImageResolver.from_settings()
