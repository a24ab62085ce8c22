import enum


class BookingStatus(str, enum.Enum):
    """Lifecycle of a booking request, from inquiry to completion."""

    PENDING = "pending"
    VENDOR_REVIEWING = "vendor_reviewing"
    QUOTE_SENT = "quote_sent"
    QUOTE_ACCEPTED = "quote_accepted"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"

    @classmethod
    def _missing_(cls, value: object):
        """Accept upper-case names such as ``QUOTE_SENT`` from API callers."""
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


# A (listing, date) pair may be held by at most one booking in these states.
ACTIVE_BOOKING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS)
