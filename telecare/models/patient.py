"""Patient profile model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String
from telecare.database import Base


class Patient(Base):
    """Patient profile owned by exactly one user."""
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    first_name = Column(String)
    last_name = Column(String)
    phone = Column(String)
