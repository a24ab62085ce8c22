"""Booking request operations: creation, status updates, messages, timeline.

Each write runs inside :func:`eventbook.database.transaction`, so the
availability/conflict checks, the status write and the counter side effects
either all land or none do.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..crud import crud_booking_message, crud_booking_request, crud_marketplace
from ..database import transaction
from ..utils.errors import (
    ConflictError,
    ForbiddenError,
    InputValidationError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
)
from .availability import is_date_available
from .booking_state import (
    ActorRole,
    require_party,
    validate_price_writers,
    validate_transition,
)

logger = logging.getLogger(__name__)

NON_CANCELLABLE_STATUSES = (models.BookingStatus.COMPLETED, models.BookingStatus.CANCELLED)


def _load_booking(db: Session, booking_id: int) -> models.BookingRequest:
    booking = crud_booking_request.get_booking_request(db, booking_id)
    if booking is None:
        logger.warning("Booking request %s not found", booking_id)
        raise NotFoundError("Booking request not found", {"booking_id": "Not found"})
    return booking


def _conflict(listing_id: int, service_date) -> ConflictError:
    logger.warning(
        "Listing %s already booked on %s", listing_id, service_date
    )
    return ConflictError(
        "Service is already booked for the requested date",
        {"service_date": "Already booked"},
    )


def _flush_or_conflict(db: Session, listing_id: int, service_date) -> None:
    # A failed flush expires every instance in the session; only plain
    # values read before the write may be used to build the error.
    try:
        db.flush()
    except IntegrityError as exc:
        # Lost the race on the (listing, date) active-booking index
        raise _conflict(listing_id, service_date) from exc


def recompute_vendor_completion_rate(db: Session, vendor_id: int) -> float:
    """Store completed/total * 100 on the vendor; 100 when it has no bookings.

    Must run after the triggering status write is flushed so the counts
    include it.
    """
    total = crud_booking_request.count_vendor_bookings(db, vendor_id)
    completed = crud_booking_request.count_vendor_bookings(
        db, vendor_id, models.BookingStatus.COMPLETED
    )
    rate = (completed / total) * 100 if total > 0 else 100.0
    crud_marketplace.set_vendor_completion_rate(db, vendor_id, rate)
    logger.info(
        "Vendor %s completion rate recomputed: %s/%s -> %.2f",
        vendor_id,
        completed,
        total,
        rate,
    )
    return rate


def apply_status_change(
    db: Session,
    booking: models.BookingRequest,
    target: models.BookingStatus,
) -> None:
    """Write ``target`` and run its side effects in the caller's transaction.

    Callers validate the transition first. Entering CONFIRMED bumps the
    listing's booking counter; entering COMPLETED recomputes the vendor's
    completion rate from the just-written state.
    """
    previous = booking.status
    listing_id = booking.service_listing_id
    service_date = booking.service_date
    vendor_id = booking.vendor_id
    if target in models.ACTIVE_BOOKING_STATUSES:
        clash = crud_booking_request.find_conflicting_booking(
            db, listing_id, service_date, exclude_id=booking.id
        )
        if clash is not None:
            raise _conflict(listing_id, service_date)

    booking.status = target
    _flush_or_conflict(db, listing_id, service_date)

    if target == models.BookingStatus.CONFIRMED and previous != models.BookingStatus.CONFIRMED:
        crud_marketplace.increment_booking_count(db, listing_id)
    if target == models.BookingStatus.COMPLETED and previous != models.BookingStatus.COMPLETED:
        recompute_vendor_completion_rate(db, vendor_id)


def create_booking(
    db: Session,
    organizer_id: int,
    booking_in: schemas.BookingRequestCreate,
) -> models.BookingRequest:
    """Create a PENDING booking request after the marketplace preconditions.

    Checks run in order and the first failure wins: event ownership, listing
    status, availability rules, then the conflicting-booking query.
    """
    with transaction(db):
        event = crud_marketplace.get_event(db, booking_in.event_id)
        if event is None:
            raise NotFoundError("Event not found", {"event_id": "Not found"})
        if event.organizer_id != organizer_id:
            logger.warning(
                "User %s attempted to book for event %s they do not own",
                organizer_id,
                event.id,
            )
            raise ForbiddenError(
                "You can only create bookings for your own events",
                {"event_id": "Forbidden"},
            )

        listing = crud_marketplace.get_service_listing(
            db, booking_in.service_listing_id, for_update=True
        )
        if listing is None:
            raise NotFoundError("Service listing not found", {"service_listing_id": "Not found"})
        if listing.status != models.ListingStatus.ACTIVE:
            raise InvalidStateError(
                "Service listing is not available",
                {"service_listing_id": "Not active"},
            )

        try:
            rules = schemas.AvailabilityRules.from_storage(listing.availability)
        except PydanticValidationError as exc:
            logger.error(
                "Listing %s has malformed availability rules: %s", listing.id, exc
            )
            raise InvalidStateError(
                "Service listing availability is misconfigured",
                {"service_listing_id": "Invalid availability"},
            ) from exc
        if not is_date_available(booking_in.service_date, rules):
            raise InvalidStateError(
                "Service is not available on the requested date",
                {"service_date": "Unavailable"},
            )

        if crud_booking_request.find_conflicting_booking(
            db, listing.id, booking_in.service_date
        ):
            raise _conflict(listing.id, booking_in.service_date)

        booking = crud_booking_request.create_booking_request(
            db, booking_in, organizer_id=organizer_id, vendor_id=listing.vendor_id
        )
        crud_marketplace.increment_inquiry_count(db, listing.id)

    logger.info(
        "Booking request %s created; organizer=%s listing=%s date=%s",
        booking.id,
        organizer_id,
        booking.service_listing_id,
        booking.service_date,
    )
    return booking


def update_booking_status(
    db: Session,
    booking_id: int,
    actor_id: int,
    updates: schemas.BookingRequestUpdate,
) -> models.BookingRequest:
    data = updates.model_dump(exclude_unset=True)
    if not data:
        raise InputValidationError("No updates supplied", {"body": "Empty update"})
    if "status" in data and data["status"] is None:
        raise InputValidationError("Status must not be null", {"status": "Required"})

    with transaction(db):
        booking = _load_booking(db, booking_id)
        role = require_party(booking, actor_id, "update")

        target: Optional[models.BookingStatus] = data.pop("status", None)
        if target is not None:
            validate_transition(booking.status, target, role)
        validate_price_writers(
            role,
            sets_quoted_price="quoted_price" in data,
            sets_final_price="final_price" in data,
        )

        previous = booking.status
        crud_booking_request.update_booking_request(db, booking, data)
        if target is not None:
            apply_status_change(db, booking, target)

    if target is not None:
        logger.info(
            "Booking request %s moved %s -> %s by %s %s",
            booking_id,
            previous.name,
            target.name,
            role.value,
            actor_id,
        )
    return booking


def cancel_booking(
    db: Session,
    booking_id: int,
    actor_id: int,
    reason: Optional[str] = None,
) -> models.BookingRequest:
    booking = _load_booking(db, booking_id)
    require_party(booking, actor_id, "cancel")
    if booking.status in NON_CANCELLABLE_STATUSES:
        raise InvalidTransitionError(
            "Cannot cancel a booking that is already completed or cancelled",
            {"status": booking.status.name},
        )

    fields = {"status": models.BookingStatus.CANCELLED}
    if reason and reason.strip():
        note = f"Cancellation reason: {reason.strip()}"
        existing = (booking.additional_notes or "").strip()
        fields["additional_notes"] = f"{existing}\n{note}" if existing else note
    return update_booking_status(
        db, booking_id, actor_id, schemas.BookingRequestUpdate(**fields)
    )


def get_booking(db: Session, booking_id: int, actor_id: int) -> models.BookingRequest:
    booking = _load_booking(db, booking_id)
    require_party(booking, actor_id, "view")
    return booking


def list_bookings_by_event(
    db: Session, event_id: int, actor_id: int, skip: int = 0, limit: int = 100
) -> List[models.BookingRequest]:
    event = crud_marketplace.get_event(db, event_id)
    if event is None:
        raise NotFoundError("Event not found", {"event_id": "Not found"})
    if event.organizer_id != actor_id:
        raise ForbiddenError(
            "You can only view bookings for your own events",
            {"event_id": "Forbidden"},
        )
    return crud_booking_request.get_booking_requests_by_event(db, event_id, skip, limit)


def list_bookings_by_vendor(
    db: Session, vendor_id: int, actor_id: int, skip: int = 0, limit: int = 100
) -> List[models.BookingRequest]:
    vendor = crud_marketplace.get_vendor_profile(db, vendor_id)
    if vendor is None:
        raise NotFoundError("Vendor not found", {"vendor_id": "Not found"})
    if vendor.user_id != actor_id:
        raise ForbiddenError(
            "You can only view your own bookings",
            {"vendor_id": "Forbidden"},
        )
    return crud_booking_request.get_booking_requests_by_vendor(db, vendor_id, skip, limit)


def send_message(
    db: Session,
    booking_id: int,
    actor_id: int,
    message_in: schemas.BookingMessageCreate,
) -> models.BookingMessage:
    with transaction(db):
        booking = _load_booking(db, booking_id)
        role = require_party(booking, actor_id, "send messages for")
        sender_type = (
            models.SenderType.ORGANIZER
            if role is ActorRole.ORGANIZER
            else models.SenderType.VENDOR
        )
        message = crud_booking_message.create_message(
            db, booking.id, actor_id, sender_type, message_in
        )
    logger.info("Message %s added to booking %s by %s", message.id, booking_id, sender_type.value)
    return message


def list_messages(db: Session, booking_id: int, actor_id: int) -> List[models.BookingMessage]:
    booking = _load_booking(db, booking_id)
    require_party(booking, actor_id, "view messages for")
    return crud_booking_message.get_messages_for_booking(db, booking.id)


def get_timeline(db: Session, booking_id: int, actor_id: int) -> List[schemas.TimelineEntry]:
    """Creation entry plus one entry per message, oldest first."""
    booking = _load_booking(db, booking_id)
    require_party(booking, actor_id, "view the timeline of")

    timeline = [
        schemas.TimelineEntry(
            type="status_change",
            status=models.BookingStatus.PENDING.name,
            timestamp=booking.created_at,
            description="Booking request created",
        )
    ]
    for message in crud_booking_message.get_messages_for_booking(db, booking.id):
        timeline.append(
            schemas.TimelineEntry(
                type="message",
                status="SENT",
                timestamp=message.sent_at,
                description=f"Message from {message.sender_type.value}: {message.message}",
            )
        )
    # Stable sort keeps the creation entry first on a timestamp tie
    return sorted(timeline, key=lambda entry: entry.timestamp)
