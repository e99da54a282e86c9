"""Doctor profile model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String
from telecare.database import Base


class Doctor(Base):
    """Doctor profile owned by exactly one user."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    first_name = Column(String)
    last_name = Column(String)
    specialization = Column(String)
    license_number = Column(String)
