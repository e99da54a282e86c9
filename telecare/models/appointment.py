"""Appointment model definitions."""

import enum

from sqlalchemy import Column, Integer, DateTime, ForeignKey, String
from telecare.database import Base


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class Appointment(Base):
    """Represents a booked consultation slot between a doctor and a patient."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.SCHEDULED.value)
    meeting_link = Column(String, unique=True, nullable=False)
    purpose_of_consultation = Column(String)
    initial_symptoms = Column(String)
