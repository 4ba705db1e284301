# spoton/schemas/profile.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ProfileCreate(BaseModel):
    id: str                    # Identity provider user id
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class ProfileOut(BaseModel):
    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    user_role: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class RoleUpdate(BaseModel):
    user_role: str             # user | admin
