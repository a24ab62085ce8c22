import logging
from typing import Optional

from sqlalchemy.orm import Session

from .. import models, schemas
from ..crud import crud_booking_request, crud_marketplace
from ..utils.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


def get_booking_statistics(
    db: Session,
    actor_id: int,
    vendor_id: Optional[int] = None,
    event_id: Optional[int] = None,
) -> schemas.BookingStatistics:
    """Count bookings by status within a scope the actor is allowed to see.

    ``vendor_id`` must be the actor's own vendor profile and ``event_id`` an
    event the actor organizes. With neither, every booking the actor is a
    party to is counted. Read only.
    """
    if vendor_id is not None:
        vendor = crud_marketplace.get_vendor_profile(db, vendor_id)
        if vendor is None:
            raise NotFoundError("Vendor not found", {"vendor_id": "Not found"})
        if vendor.user_id != actor_id:
            logger.warning("User %s requested stats for vendor %s", actor_id, vendor_id)
            raise ForbiddenError(
                "You can only view statistics for your own vendor profile",
                {"vendor_id": "Forbidden"},
            )
    if event_id is not None:
        event = crud_marketplace.get_event(db, event_id)
        if event is None:
            raise NotFoundError("Event not found", {"event_id": "Not found"})
        if event.organizer_id != actor_id:
            logger.warning("User %s requested stats for event %s", actor_id, event_id)
            raise ForbiddenError(
                "You can only view statistics for your own events",
                {"event_id": "Forbidden"},
            )

    counts = crud_booking_request.count_by_status(
        db,
        vendor_id=vendor_id,
        event_id=event_id,
        party_user_id=actor_id if vendor_id is None and event_id is None else None,
    )
    total = sum(counts.values())
    pending = counts.get(models.BookingStatus.PENDING, 0)
    confirmed = counts.get(models.BookingStatus.CONFIRMED, 0)
    completed = counts.get(models.BookingStatus.COMPLETED, 0)
    cancelled = counts.get(models.BookingStatus.CANCELLED, 0)

    return schemas.BookingStatistics(
        total=total,
        pending=pending,
        confirmed=confirmed,
        completed=completed,
        cancelled=cancelled,
        by_status={status.name: counts.get(status, 0) for status in models.BookingStatus},
        conversion_rate=(confirmed / total) * 100 if total > 0 else 0.0,
        completion_rate=(completed / confirmed) * 100 if confirmed > 0 else 0.0,
    )
