# spoton/services/identity.py
"""
Current-user resolution for the API.
The identity provider authenticates upstream and forwards the user id in
X-User-Id. Roles come from Profile.user_role only.
"""

from datetime import datetime
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session
from spoton.database import get_db
from spoton.models.profile import Profile, ROLE_USER, ROLE_ADMIN, ROLES
from spoton.services.errors import InvalidInput, store_errors
from spoton.utils.logger import get_logger

logger = get_logger(__name__)


def get_current_user(x_user_id: str = Header(None), db: Session = Depends(get_db)) -> Profile:
    """FastAPI dependency: the signed-in user's profile."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
    with store_errors(db, "profile lookup"):
        profile = db.query(Profile).filter(Profile.id == x_user_id).first()
    if not profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return profile


def require_admin(user: Profile = Depends(get_current_user)) -> Profile:
    if user.user_role != ROLE_ADMIN:
        logger.warning(f"Admin endpoint refused for user {user.id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administrator role required")
    return user


def register_profile(db: Session, user_id: str, email: str, first_name: str = None, last_name: str = None) -> Profile:
    """Create a profile for a newly signed-up user. Always starts with the 'user' role."""
    with store_errors(db, "profile registration"):
        existing = db.query(Profile).filter((Profile.id == user_id) | (Profile.email == email)).first()
        if existing:
            raise InvalidInput(f"Profile for {email} already exists")
        now = datetime.utcnow()
        profile = Profile(id=user_id, email=email, first_name=first_name, last_name=last_name,
                          user_role=ROLE_USER, created_at=now, updated_at=now)
        db.add(profile)
        db.commit()
        db.refresh(profile)
    logger.info(f"Registered profile {user_id}")
    return profile


def set_role(db: Session, user_id: str, role: str) -> Profile:
    if role not in ROLES:
        raise InvalidInput(f"Unknown role '{role}'")
    with store_errors(db, "role update"):
        profile = db.query(Profile).filter(Profile.id == user_id).first()
        if not profile:
            raise InvalidInput(f"User {user_id} not found", not_found=True)
        profile.user_role = role
        profile.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(profile)
    logger.info(f"User {user_id} role set to {role}")
    return profile
