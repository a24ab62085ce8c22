"""Booking status transition table and role gates.

Every permission decision about a booking starts from
:func:`resolve_actor_role`, so organizer/vendor detection lives in one place.
"""

from __future__ import annotations

import enum
import logging
from typing import Dict, FrozenSet, Optional

from .. import models
from ..utils.errors import (
    ForbiddenError,
    InvalidTransitionError,
    RoleNotPermittedError,
)

logger = logging.getLogger(__name__)

S = models.BookingStatus

VALID_TRANSITIONS: Dict[models.BookingStatus, FrozenSet[models.BookingStatus]] = {
    S.PENDING: frozenset({S.VENDOR_REVIEWING, S.CANCELLED}),
    S.VENDOR_REVIEWING: frozenset({S.QUOTE_SENT, S.CANCELLED}),
    S.QUOTE_SENT: frozenset({S.QUOTE_ACCEPTED, S.CANCELLED}),
    S.QUOTE_ACCEPTED: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.IN_PROGRESS, S.CANCELLED}),
    S.IN_PROGRESS: frozenset({S.COMPLETED, S.DISPUTED}),
    S.COMPLETED: frozenset({S.DISPUTED}),
    S.DISPUTED: frozenset({S.COMPLETED, S.CANCELLED}),
    S.CANCELLED: frozenset(),
}

# Target statuses only one side of the booking may request.
VENDOR_ONLY_TARGETS = frozenset({S.VENDOR_REVIEWING, S.QUOTE_SENT})
ORGANIZER_ONLY_TARGETS = frozenset({S.QUOTE_ACCEPTED})


class ActorRole(str, enum.Enum):
    ORGANIZER = "organizer"
    VENDOR = "vendor"
    NEITHER = "neither"


def resolve_actor_role(booking: models.BookingRequest, actor_id: Optional[int]) -> ActorRole:
    """Return which side of ``booking`` the actor is on.

    The organizer is ``booking.organizer_id``; the vendor is the user who
    owns the booking's vendor profile.
    """
    if actor_id is None:
        return ActorRole.NEITHER
    if booking.organizer_id == actor_id:
        return ActorRole.ORGANIZER
    vendor = booking.vendor
    if vendor is not None and vendor.user_id == actor_id:
        return ActorRole.VENDOR
    return ActorRole.NEITHER


def require_party(
    booking: models.BookingRequest, actor_id: Optional[int], action: str = "access"
) -> ActorRole:
    role = resolve_actor_role(booking, actor_id)
    if role is ActorRole.NEITHER:
        logger.warning(
            "User %s is not a party to booking %s; action=%s",
            actor_id,
            booking.id,
            action,
        )
        raise ForbiddenError(
            f"You do not have permission to {action} this booking",
            {"booking_id": "Forbidden"},
        )
    return role


def can_transition(current: models.BookingStatus, target: models.BookingStatus) -> bool:
    return target in VALID_TRANSITIONS.get(current, frozenset())


def validate_transition(
    current: models.BookingStatus,
    target: models.BookingStatus,
    role: ActorRole,
) -> None:
    """Raise unless ``role`` may move a booking from ``current`` to ``target``."""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Invalid status transition from {current.name} to {target.name}",
            {"status": "Invalid transition"},
        )
    if target in VENDOR_ONLY_TARGETS and role is not ActorRole.VENDOR:
        raise RoleNotPermittedError(
            f"Only vendors can move a booking to {target.name}",
            {"status": "Vendor only"},
        )
    if target in ORGANIZER_ONLY_TARGETS and role is not ActorRole.ORGANIZER:
        raise RoleNotPermittedError(
            "Only organizers can accept quotes",
            {"status": "Organizer only"},
        )


def validate_price_writers(
    role: ActorRole,
    *,
    sets_quoted_price: bool,
    sets_final_price: bool,
) -> None:
    if sets_quoted_price and role is not ActorRole.VENDOR:
        raise RoleNotPermittedError(
            "Only vendors can set quoted prices",
            {"quoted_price": "Vendor only"},
        )
    if sets_final_price and role is not ActorRole.ORGANIZER:
        raise RoleNotPermittedError(
            "Only organizers can set final prices",
            {"final_price": "Organizer only"},
        )
