"""Shared in-memory database and marketplace records for the engine tests."""

from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eventbook import models, schemas
from eventbook.models.base import BaseModel
from eventbook.services import booking_service


def setup_db():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autoflush=False)
    return Session


def seed_marketplace(db, *, category="CATERING", availability=None, listing_status=None):
    organizer = models.User(email="olivia@test.com", name="Olivia Organizer")
    vendor_user = models.User(email="victor@test.com", name="Victor Vendor")
    outsider = models.User(email="oscar@test.com", name="Oscar Outsider")
    db.add_all([organizer, vendor_user, outsider])
    db.flush()

    vendor = models.VendorProfile(user_id=vendor_user.id, business_name="Tasty Bites")
    event = models.Event(organizer_id=organizer.id, name="Spring Gala", start_date=future_date(40))
    db.add_all([vendor, event])
    db.flush()

    listing = models.ServiceListing(
        vendor_id=vendor.id,
        title="Gala Catering",
        category=category,
        status=listing_status or models.ListingStatus.ACTIVE,
        availability=availability,
    )
    db.add(listing)
    db.commit()
    return SimpleNamespace(
        organizer=organizer,
        vendor_user=vendor_user,
        outsider=outsider,
        vendor=vendor,
        event=event,
        listing=listing,
    )


def future_date(days):
    return date.today() + timedelta(days=days)


def booking_payload(seed, service_date=None, **overrides):
    data = dict(
        event_id=seed.event.id,
        service_listing_id=seed.listing.id,
        service_date=service_date or future_date(40),
        requirements="Dinner for 120 guests",
    )
    data.update(overrides)
    return schemas.BookingRequestCreate(**data)


def advance_to_quote_accepted(db, seed, booking_id, quoted_price=Decimal("1000")):
    """Drive a PENDING booking through the vendor and organizer steps."""
    S = models.BookingStatus
    vendor_id = seed.vendor_user.id
    organizer_id = seed.organizer.id
    booking_service.update_booking_status(
        db, booking_id, vendor_id, schemas.BookingRequestUpdate(status=S.VENDOR_REVIEWING)
    )
    booking_service.update_booking_status(
        db,
        booking_id,
        vendor_id,
        schemas.BookingRequestUpdate(status=S.QUOTE_SENT, quoted_price=quoted_price),
    )
    return booking_service.update_booking_status(
        db, booking_id, organizer_id, schemas.BookingRequestUpdate(status=S.QUOTE_ACCEPTED)
    )
