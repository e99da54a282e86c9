"""Notification record definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from telecare.database import Base


class Notification(Base):
    """A notification that was handed to the mail channel."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    recipient = Column(String, nullable=False)
    subject = Column(String)
    template_name = Column(String)
    message = Column(String)
    channel = Column(String, default="EMAIL")
    user_id = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, nullable=False)
