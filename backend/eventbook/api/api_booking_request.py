from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import models, schemas
from ..services import agreement_service, booking_service, booking_stats
from .dependencies import get_current_user, get_db

# Prefix is added when this router is included in `eventbook/main.py`.
# BookingEngineError raised by the services is turned into the structured
# error body by the handler registered in main.
router = APIRouter(
    tags=["Booking Requests"],
    default_response_class=ORJSONResponse,
)


@router.post(
    "",
    response_model=schemas.BookingRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_booking_request(
    request_in: schemas.BookingRequestCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Create a PENDING booking request for one of the caller's events."""
    return booking_service.create_booking(db, current_user.id, request_in)


@router.get("/stats", response_model=schemas.BookingStatistics)
def read_booking_statistics(
    vendor_id: Optional[int] = Query(None),
    event_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return booking_stats.get_booking_statistics(
        db, current_user.id, vendor_id=vendor_id, event_id=event_id
    )


@router.get("/event/{event_id}", response_model=List[schemas.BookingRequestResponse])
def read_event_booking_requests(
    event_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return booking_service.list_bookings_by_event(db, event_id, current_user.id, skip, limit)


@router.get("/vendor/{vendor_id}", response_model=List[schemas.BookingRequestResponse])
def read_vendor_booking_requests(
    vendor_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return booking_service.list_bookings_by_vendor(db, vendor_id, current_user.id, skip, limit)


@router.get("/{request_id}", response_model=schemas.BookingRequestResponse)
def read_booking_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return booking_service.get_booking(db, request_id, current_user.id)


@router.put("/{request_id}", response_model=schemas.BookingRequestResponse)
def update_booking_request(
    request_id: int,
    request_update: schemas.BookingRequestUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Change status and/or prices; transition and role rules apply."""
    return booking_service.update_booking_status(db, request_id, current_user.id, request_update)


@router.post("/{request_id}/cancel", response_model=schemas.BookingRequestResponse)
def cancel_booking_request(
    request_id: int,
    payload: Optional[schemas.BookingCancel] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    reason = payload.reason if payload else None
    return booking_service.cancel_booking(db, request_id, current_user.id, reason)


@router.post(
    "/{request_id}/messages",
    response_model=schemas.BookingMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_booking_message(
    request_id: int,
    message_in: schemas.BookingMessageCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return booking_service.send_message(db, request_id, current_user.id, message_in)


@router.get("/{request_id}/messages", response_model=List[schemas.BookingMessageResponse])
def read_booking_messages(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return booking_service.list_messages(db, request_id, current_user.id)


@router.get("/{request_id}/timeline", response_model=List[schemas.TimelineEntry])
def read_booking_timeline(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return booking_service.get_timeline(db, request_id, current_user.id)


@router.post(
    "/{request_id}/agreement",
    response_model=schemas.ServiceAgreementResponse,
    status_code=status.HTTP_201_CREATED,
)
def generate_booking_agreement(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Generate the agreement from the listing category's default template."""
    return agreement_service.generate_for_booking(db, request_id, current_user.id)
