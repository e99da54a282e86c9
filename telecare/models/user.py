"""User model definitions."""

from sqlalchemy import Column, Integer, String
from telecare.database import Base


ROLE_DOCTOR = "DOCTOR"
ROLE_PATIENT = "PATIENT"
ROLE_ADMIN = "ADMIN"


class User(Base):
    """Represents an account that can sign in; profiles hang off it."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String, nullable=False)  # comma separated, e.g. "DOCTOR" or "PATIENT,ADMIN"

    @property
    def roles(self) -> frozenset[str]:
        return frozenset(part.strip().upper() for part in (self.role or "").split(",") if part.strip())
