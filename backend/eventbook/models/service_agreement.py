from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel


class DeliverableStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    OVERDUE = "OVERDUE"


class MilestoneStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class SignatureType(str, enum.Enum):
    ORGANIZER = "ORGANIZER"
    VENDOR = "VENDOR"


class ServiceAgreement(BaseModel):
    """Binding contract derived from an accepted quote.

    ``deliverables`` and ``payment_schedule`` are ordered JSON lists written
    and read through ``schemas.Deliverable`` / ``schemas.PaymentMilestone`` so
    the whole agreement is updated as one row.
    """

    __tablename__ = "service_agreements"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(
        Integer,
        ForeignKey("booking_requests.id"),
        unique=True,
        nullable=False,
        index=True,
    )
    terms = Column(Text, nullable=False, default="")
    deliverables = Column(JSON, nullable=False, default=list)
    payment_schedule = Column(JSON, nullable=False, default=list)
    cancellation_policy = Column(Text, nullable=False, default="")

    organizer_signature = Column(String, nullable=True)
    vendor_signature = Column(String, nullable=True)
    # {"organizer": {"ip_address", "user_agent", "signed_at"}, "vendor": {...}}
    signature_metadata = Column(JSON, nullable=True)
    signed_at = Column(DateTime, nullable=True)

    booking = relationship("BookingRequest", back_populates="agreement")
