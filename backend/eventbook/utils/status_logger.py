import logging

from sqlalchemy import event
from sqlalchemy.orm.attributes import NO_VALUE

from .. import models

logger = logging.getLogger(__name__)

_registered = False


def _status_label(status) -> str:
    return getattr(status, "name", str(status))


def log_booking_transition(booking, new_status, old_status, initiator) -> None:  # noqa: ANN001
    if old_status is NO_VALUE or old_status == new_status:
        return
    old_label = _status_label(old_status)
    new_label = _status_label(new_status)
    logger.info(
        "Booking request %s: %s -> %s",
        booking.id,
        old_label,
        new_label,
        extra={
            "booking_id": booking.id,
            "service_listing_id": booking.service_listing_id,
            "service_date": str(booking.service_date),
            "old_status": old_label,
            "new_status": new_label,
        },
    )


def register_status_listeners() -> None:
    """Log every write to ``BookingRequest.status``; repeat calls are no-ops."""
    global _registered
    if _registered:
        return
    event.listen(models.BookingRequest.status, "set", log_booking_transition)
    _registered = True
