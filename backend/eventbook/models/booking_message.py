from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, JSON, Text
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum
from ..utils.time import utcnow


class SenderType(str, enum.Enum):
    ORGANIZER = "organizer"
    VENDOR = "vendor"


class BookingMessage(BaseModel):
    """Append-only note exchanged between the two parties of a booking."""

    __tablename__ = "booking_messages"
    __table_args__ = (
        Index("ix_booking_messages_booking_time", "booking_id", "sent_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("booking_requests.id"), nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    sender_type = Column(CaseInsensitiveEnum(SenderType), nullable=False)
    message = Column(Text, nullable=False)
    attachments = Column(JSON, nullable=True)
    sent_at = Column(DateTime, nullable=False, default=utcnow)

    booking = relationship("BookingRequest", back_populates="messages")
