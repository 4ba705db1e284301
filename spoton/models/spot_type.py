# spoton/models/spot_type.py
"""Spot types: regular | shaded | accessible. Used for filtering and dashboard breakdowns."""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text
from spoton.database import Base


class SpotType(Base):
    __tablename__ = "spot_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(Text)
    is_shaded = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<SpotType {self.name} shaded={self.is_shaded}>"
