# spoton/models/profile.py
"""
User profiles. The id is the identity provider's user id.
user_role is assigned explicitly (user | admin), never derived from the email.
"""

from sqlalchemy import Column, String, DateTime
from spoton.database import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(100), primary_key=True)
    email = Column(String(200), unique=True, nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    user_role = Column(String(20), default=ROLE_USER, nullable=False)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<Profile {self.id} email={self.email} role={self.user_role}>"
