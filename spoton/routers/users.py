# spoton/routers/users.py
"""Profiles and role management."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from spoton.database import get_db
from spoton.models.profile import Profile
from spoton.schemas.profile import ProfileCreate, ProfileOut, RoleUpdate
from spoton.services.identity import get_current_user, require_admin, register_profile, set_role

router = APIRouter()


@router.post("/users", response_model=ProfileOut, status_code=201, summary="Register a signed-up user")
def register_user(body: ProfileCreate, db: Session = Depends(get_db)):
    """New profiles always get the 'user' role; admins promote via PUT /users/{id}/role."""
    return register_profile(db, body.id, body.email, body.first_name, body.last_name)


@router.get("/users/me", response_model=ProfileOut)
def get_me(user: Profile = Depends(get_current_user)):
    return user


@router.get("/users", response_model=list[ProfileOut], summary="All users (admin)")
def list_users(db: Session = Depends(get_db), admin: Profile = Depends(require_admin)):
    return db.query(Profile).order_by(Profile.email.asc()).all()


@router.put("/users/{user_id}/role", response_model=ProfileOut, summary="Change a user's role (admin)")
def change_role(user_id: str, body: RoleUpdate, db: Session = Depends(get_db),
                admin: Profile = Depends(require_admin)):
    return set_role(db, user_id, body.user_role)
