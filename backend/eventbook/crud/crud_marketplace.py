"""Boundary reads/writes on marketplace records owned by other services.

The engine only needs a narrow slice of events, listings, vendor profiles
and users: ownership lookups, the listing counters and the vendor's
completion rate.
"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from .. import models


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_event(db: Session, event_id: int) -> Optional[models.Event]:
    return (
        db.query(models.Event)
        .options(joinedload(models.Event.organizer))
        .filter(models.Event.id == event_id)
        .first()
    )


def get_service_listing(
    db: Session, listing_id: int, *, for_update: bool = False
) -> Optional[models.ServiceListing]:
    query = db.query(models.ServiceListing).filter(models.ServiceListing.id == listing_id)
    if for_update:
        # Serializes concurrent bookings against one listing on Postgres;
        # SQLite already serializes writers and ignores the clause.
        query = query.with_for_update()
    return query.first()


def get_vendor_profile(db: Session, vendor_id: int) -> Optional[models.VendorProfile]:
    return (
        db.query(models.VendorProfile)
        .filter(models.VendorProfile.id == vendor_id)
        .first()
    )


def increment_inquiry_count(db: Session, listing_id: int) -> None:
    # Computed in SQL so concurrent writers never lose an increment
    db.query(models.ServiceListing).filter(models.ServiceListing.id == listing_id).update(
        {models.ServiceListing.inquiry_count: models.ServiceListing.inquiry_count + 1},
        synchronize_session=False,
    )


def increment_booking_count(db: Session, listing_id: int) -> None:
    db.query(models.ServiceListing).filter(models.ServiceListing.id == listing_id).update(
        {models.ServiceListing.booking_count: models.ServiceListing.booking_count + 1},
        synchronize_session=False,
    )


def set_vendor_completion_rate(db: Session, vendor_id: int, completion_rate: float) -> None:
    db.query(models.VendorProfile).filter(models.VendorProfile.id == vendor_id).update(
        {models.VendorProfile.completion_rate: completion_rate},
        synchronize_session=False,
    )
