"""Delete planned dishes.

Usage:
    python scripts/clear_dishes.py               # every user's dishes
    python scripts/clear_dishes.py cook@host.tld # one user's dishes
"""

import sys
import os

# Add mealweek to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from mealweek.db import session_scope
from mealweek.models import Dish, User


def clear_dishes(db, email=None) -> int:
    """Delete every dish, or only those of the user with `email`."""
    query = db.query(Dish)
    if email:
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user:
            print(f"No user found for {email}")
            return 0
        query = query.filter(Dish.user_id == user.id)

    count = query.delete(synchronize_session=False)
    db.commit()
    return count


def main(argv) -> int:
    target_email = argv[1] if len(argv) > 1 else None
    try:
        with session_scope() as db:
            deleted = clear_dishes(db, target_email)
    except Exception as e:
        print(f"Failed to clear dishes: {e}")
        return 1
    print(f"Deleted {deleted} dishes.")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
