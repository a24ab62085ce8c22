from sqlalchemy import Column, Date, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from .base import BaseModel


class Event(BaseModel):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=True)

    organizer = relationship("User", back_populates="events")
    booking_requests = relationship("BookingRequest", back_populates="event")
