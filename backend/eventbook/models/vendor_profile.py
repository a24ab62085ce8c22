from sqlalchemy import Column, Float, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class VendorProfile(BaseModel):
    """Business profile of a vendor; ``completion_rate`` is maintained by the engine."""

    __tablename__ = "vendor_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    business_name = Column(String, index=True, nullable=False)
    rating = Column(Numeric(3, 2), nullable=True)
    review_count = Column(Integer, nullable=False, default=0)
    # Percentage 0-100 of this vendor's bookings that reached COMPLETED
    completion_rate = Column(Float, nullable=True)

    user = relationship("User", back_populates="vendor_profile")
    listings = relationship("ServiceListing", back_populates="vendor")
