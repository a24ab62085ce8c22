from sqlalchemy import (
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    Text,
    text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .booking_status import BookingStatus
from .types import CaseInsensitiveEnum

_ACTIVE_STATUS_PREDICATE = text("status IN ('confirmed', 'in_progress')")


class BookingRequest(BaseModel):
    """One organizer's request for one vendor listing on one date."""

    __tablename__ = "booking_requests"
    __table_args__ = (
        # Storage-level guard against double booking: only one confirmed or
        # in-progress booking per listing and date, however many requests race.
        Index(
            "uq_booking_requests_listing_date_active",
            "service_listing_id",
            "service_date",
            unique=True,
            postgresql_where=_ACTIVE_STATUS_PREDICATE,
            sqlite_where=_ACTIVE_STATUS_PREDICATE,
        ),
        Index("ix_booking_requests_listing_date", "service_listing_id", "service_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    service_listing_id = Column(Integer, ForeignKey("service_listings.id"), nullable=False)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendor_profiles.id"), nullable=False, index=True)

    service_date = Column(Date, nullable=False)
    requirements = Column(Text, nullable=False)
    budget_range = Column(JSON, nullable=True)
    quoted_price = Column(Numeric(10, 2), nullable=True)
    final_price = Column(Numeric(10, 2), nullable=True)
    additional_notes = Column(Text, nullable=True)

    status = Column(
        CaseInsensitiveEnum(BookingStatus),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )

    event = relationship("Event", back_populates="booking_requests")
    service_listing = relationship("ServiceListing", back_populates="booking_requests")
    organizer = relationship("User", foreign_keys=[organizer_id])
    vendor = relationship("VendorProfile", foreign_keys=[vendor_id])
    messages = relationship(
        "BookingMessage",
        back_populates="booking",
        order_by="BookingMessage.sent_at",
    )
    agreement = relationship("ServiceAgreement", back_populates="booking", uselist=False)
