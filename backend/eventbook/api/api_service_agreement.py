from typing import List

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import models, schemas
from ..services import agreement_service
from .dependencies import get_current_user, get_db

router = APIRouter(
    tags=["Service Agreements"],
    default_response_class=ORJSONResponse,
)


@router.get("/templates", response_model=List[schemas.AgreementTemplateRead])
def read_agreement_templates(
    current_user: models.User = Depends(get_current_user),
):
    return agreement_service.list_agreement_templates()


@router.post(
    "/generate",
    response_model=schemas.ServiceAgreementResponse,
    status_code=status.HTTP_201_CREATED,
)
def generate_service_agreement(
    agreement_in: schemas.ServiceAgreementCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return agreement_service.generate_agreement(db, current_user.id, agreement_in)


@router.get("/booking/{booking_id}", response_model=schemas.ServiceAgreementResponse)
def read_booking_agreement(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return agreement_service.get_agreement(db, booking_id, current_user.id)


@router.put("/{agreement_id}", response_model=schemas.ServiceAgreementResponse)
def update_service_agreement(
    agreement_id: int,
    agreement_update: schemas.ServiceAgreementUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return agreement_service.update_agreement(db, agreement_id, current_user.id, agreement_update)


@router.post("/{agreement_id}/sign", response_model=schemas.ServiceAgreementResponse)
def sign_service_agreement(
    agreement_id: int,
    signature_in: schemas.SignatureRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Record the caller's signature; fill in audit fields from the request."""
    if signature_in.ip_address is None and request.client is not None:
        signature_in.ip_address = request.client.host
    if signature_in.user_agent is None:
        signature_in.user_agent = request.headers.get("user-agent")
    return agreement_service.sign_agreement(db, agreement_id, current_user.id, signature_in)


@router.put(
    "/{agreement_id}/deliverables/{deliverable_id}",
    response_model=schemas.ServiceAgreementResponse,
)
def update_agreement_deliverable(
    agreement_id: int,
    deliverable_id: str,
    payload: schemas.DeliverableStatusUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return agreement_service.update_deliverable_status(
        db, agreement_id, deliverable_id, current_user.id, payload.status
    )


@router.put(
    "/{agreement_id}/milestones/{milestone_id}",
    response_model=schemas.ServiceAgreementResponse,
)
def update_agreement_milestone(
    agreement_id: int,
    milestone_id: str,
    payload: schemas.MilestoneStatusUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return agreement_service.update_milestone_status(
        db, agreement_id, milestone_id, current_user.id, payload.status
    )


@router.get("/{agreement_id}/progress", response_model=schemas.AgreementProgress)
def read_agreement_progress(
    agreement_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return agreement_service.get_agreement_progress(db, agreement_id, current_user.id)
