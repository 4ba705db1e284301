# spoton/models/building.py
"""
Buildings table: each campus building owns a parking lot.
Inactive buildings are hidden from availability queries.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from spoton.database import Base


class Building(Base):
    __tablename__ = "buildings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(20), unique=True, nullable=False, index=True)   # e.g. J2-A
    name = Column(String(200), nullable=False)
    location = Column(String(200))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<Building {self.code} active={self.is_active}>"
