from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from .base import BaseModel


class User(BaseModel):
    """Account record owned by the identity service; the engine only reads it."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)

    vendor_profile = relationship("VendorProfile", back_populates="user", uselist=False)
    events = relationship("Event", back_populates="organizer")
