from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas

# --- BookingRequest CRUD ---


def create_booking_request(
    db: Session,
    booking_request: schemas.BookingRequestCreate,
    organizer_id: int,
    vendor_id: int,
) -> models.BookingRequest:
    data = booking_request.model_dump(exclude={"budget_range"})
    budget = booking_request.budget_range
    db_booking_request = models.BookingRequest(
        **data,
        budget_range=budget.model_dump(mode="json") if budget else None,
        organizer_id=organizer_id,
        vendor_id=vendor_id,
        status=models.BookingStatus.PENDING,
    )
    db.add(db_booking_request)
    db.flush()
    return db_booking_request


def _with_parties(query):
    return query.options(
        joinedload(models.BookingRequest.vendor),
        joinedload(models.BookingRequest.event),
        joinedload(models.BookingRequest.service_listing),
        joinedload(models.BookingRequest.organizer),
    )


def get_booking_request(db: Session, request_id: int) -> Optional[models.BookingRequest]:
    return (
        _with_parties(db.query(models.BookingRequest))
        .filter(models.BookingRequest.id == request_id)
        .first()
    )


def get_booking_requests_by_event(
    db: Session, event_id: int, skip: int = 0, limit: int = 100
) -> List[models.BookingRequest]:
    return (
        _with_parties(db.query(models.BookingRequest))
        .filter(models.BookingRequest.event_id == event_id)
        .order_by(models.BookingRequest.created_at.desc(), models.BookingRequest.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_booking_requests_by_vendor(
    db: Session, vendor_id: int, skip: int = 0, limit: int = 100
) -> List[models.BookingRequest]:
    return (
        _with_parties(db.query(models.BookingRequest))
        .filter(models.BookingRequest.vendor_id == vendor_id)
        .order_by(models.BookingRequest.created_at.desc(), models.BookingRequest.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def find_conflicting_booking(
    db: Session,
    service_listing_id: int,
    service_date: date,
    exclude_id: Optional[int] = None,
) -> Optional[models.BookingRequest]:
    """Return a booking already holding the listing on that date, if any."""
    query = db.query(models.BookingRequest).filter(
        models.BookingRequest.service_listing_id == service_listing_id,
        models.BookingRequest.service_date == service_date,
        models.BookingRequest.status.in_(models.ACTIVE_BOOKING_STATUSES),
    )
    if exclude_id is not None:
        query = query.filter(models.BookingRequest.id != exclude_id)
    return query.first()


def count_vendor_bookings(
    db: Session, vendor_id: int, status: Optional[models.BookingStatus] = None
) -> int:
    query = db.query(func.count(models.BookingRequest.id)).filter(
        models.BookingRequest.vendor_id == vendor_id
    )
    if status is not None:
        query = query.filter(models.BookingRequest.status == status)
    return int(query.scalar() or 0)


def count_by_status(
    db: Session,
    *,
    vendor_id: Optional[int] = None,
    event_id: Optional[int] = None,
    party_user_id: Optional[int] = None,
) -> Dict[models.BookingStatus, int]:
    """Group booking counts by status for the given scope."""
    query = db.query(models.BookingRequest.status, func.count(models.BookingRequest.id))
    if vendor_id is not None:
        query = query.filter(models.BookingRequest.vendor_id == vendor_id)
    if event_id is not None:
        query = query.filter(models.BookingRequest.event_id == event_id)
    if party_user_id is not None:
        vendor_ids = select(models.VendorProfile.id).where(
            models.VendorProfile.user_id == party_user_id
        )
        query = query.filter(
            or_(
                models.BookingRequest.organizer_id == party_user_id,
                models.BookingRequest.vendor_id.in_(vendor_ids),
            )
        )
    rows = query.group_by(models.BookingRequest.status).all()
    return {status: int(count) for status, count in rows}


def update_booking_request(
    db: Session,
    db_booking_request: models.BookingRequest,
    update_data: Dict[str, Any],
) -> models.BookingRequest:
    for key, value in update_data.items():
        setattr(db_booking_request, key, value)
    db.add(db_booking_request)
    return db_booking_request
