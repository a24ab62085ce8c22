from sqlalchemy import Column, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum


class ListingStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"


class ServiceCategory(str, enum.Enum):
    """Marketplace categories that have a matching agreement template."""

    CATERING = "CATERING"
    PHOTOGRAPHY = "PHOTOGRAPHY"
    VIDEOGRAPHY = "VIDEOGRAPHY"
    VENUE = "VENUE"


class ServiceListing(BaseModel):
    __tablename__ = "service_listings"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(
        Integer,
        ForeignKey("vendor_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    # Free-form so new marketplace categories never need a schema change
    category = Column(String, nullable=False, default=ServiceCategory.CATERING.value)
    status = Column(
        CaseInsensitiveEnum(ListingStatus),
        nullable=False,
        default=ListingStatus.DRAFT,
    )
    # Shape validated by schemas.AvailabilityRules when read
    availability = Column(JSON, nullable=True)
    view_count = Column(Integer, nullable=False, default=0)
    inquiry_count = Column(Integer, nullable=False, default=0)
    booking_count = Column(Integer, nullable=False, default=0)

    vendor = relationship("VendorProfile", back_populates="listings")
    booking_requests = relationship("BookingRequest", back_populates="service_listing")
