"""Consultation notes model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from telecare.database import Base


class Consultation(Base):
    """Clinical notes recorded by the doctor for one appointment."""
    __tablename__ = "consultations"

    id = Column(Integer, primary_key=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), unique=True, nullable=False)
    consultation_date = Column(DateTime, nullable=False)
    subjective_notes = Column(String)
    objective_findings = Column(String)
    assessment = Column(String)
    plan = Column(String)
