"""Service agreement lifecycle: generation, edits, co-signing and tracking."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..crud import crud_booking_request, crud_service_agreement
from ..database import transaction
from ..utils.errors import (
    AlreadyExistsError,
    AlreadySignedError,
    InputValidationError,
    InvalidStateError,
    NotFoundError,
    RoleNotPermittedError,
)
from ..utils.time import utcnow
from . import agreement_templates
from .booking_service import apply_status_change
from .booking_state import ActorRole, require_party, validate_transition

logger = logging.getLogger(__name__)

SIGNER_ROLES = {
    models.SignatureType.ORGANIZER: ActorRole.ORGANIZER,
    models.SignatureType.VENDOR: ActorRole.VENDOR,
}


def _load_booking(db: Session, booking_id: int) -> models.BookingRequest:
    booking = crud_booking_request.get_booking_request(db, booking_id)
    if booking is None:
        raise NotFoundError("Booking request not found", {"booking_id": "Not found"})
    return booking


def _load_agreement(db: Session, agreement_id: int) -> models.ServiceAgreement:
    agreement = crud_service_agreement.get_agreement(db, agreement_id)
    if agreement is None:
        logger.warning("Service agreement %s not found", agreement_id)
        raise NotFoundError("Service agreement not found", {"agreement_id": "Not found"})
    return agreement


def _resolve_template(
    template_id: Optional[str], booking: models.BookingRequest
) -> Optional[schemas.AgreementTemplate]:
    """Explicit id first, then the listing category's default.

    An unknown explicit id resolves to no template at all.
    """
    if template_id:
        template = agreement_templates.get_template(template_id)
        if template is None:
            logger.warning("Unknown agreement template %s; using caller fields only", template_id)
        return template
    category = booking.service_listing.category if booking.service_listing else None
    return agreement_templates.template_for_category(category)


def generate_agreement(
    db: Session,
    actor_id: int,
    agreement_in: schemas.ServiceAgreementCreate,
) -> models.ServiceAgreement:
    """Create the agreement for a QUOTE_ACCEPTED booking.

    Caller-supplied terms, policy, deliverables and schedule win; anything
    left empty is filled from the template (explicit ``template_id`` or the
    listing category's default). Only the terms are personalized.
    """
    with transaction(db):
        booking = _load_booking(db, agreement_in.booking_id)
        require_party(booking, actor_id, "create an agreement for")
        if booking.status != models.BookingStatus.QUOTE_ACCEPTED:
            logger.warning(
                "Agreement requested for booking %s in status %s",
                booking.id,
                booking.status.name,
            )
            raise InvalidStateError(
                "Service agreement can only be generated for accepted quotes",
                {"status": booking.status.name},
            )
        if crud_service_agreement.get_agreement_by_booking(db, booking.id) is not None:
            raise AlreadyExistsError(
                "Service agreement already exists for this booking",
                {"booking_id": "Agreement exists"},
            )

        template = _resolve_template(agreement_in.template_id, booking)
        now = utcnow()
        deliverables = agreement_templates.deliverables_from_input(agreement_in.deliverables or [])
        schedule = agreement_templates.milestones_from_input(agreement_in.payment_schedule or [])
        terms = agreement_in.custom_terms or ""
        policy = agreement_in.cancellation_policy or ""
        if template is not None:
            if not deliverables:
                deliverables = agreement_templates.instantiate_deliverables(template, booking, now)
            if not schedule:
                schedule = agreement_templates.instantiate_payment_schedule(template, booking, now)
            terms = terms or template.terms or ""
            policy = policy or template.cancellation_policy or ""

        try:
            agreement = crud_service_agreement.create_agreement(
                db,
                booking_id=booking.id,
                terms=agreement_templates.personalize_terms(terms, booking),
                deliverables=deliverables,
                payment_schedule=schedule,
                cancellation_policy=policy,
            )
        except IntegrityError as exc:
            # A concurrent request created it between the check and the insert
            raise AlreadyExistsError(
                "Service agreement already exists for this booking",
                {"booking_id": "Agreement exists"},
            ) from exc

    logger.info(
        "Service agreement %s generated for booking %s from %s",
        agreement.id,
        agreement.booking_id,
        template.id if template is not None else "caller fields",
    )
    return agreement


def generate_for_booking(db: Session, booking_id: int, actor_id: int) -> models.ServiceAgreement:
    """Generate with the booking category's default template and no overrides."""
    return generate_agreement(
        db, actor_id, schemas.ServiceAgreementCreate(booking_id=booking_id)
    )


def get_agreement(db: Session, booking_id: int, actor_id: int) -> models.ServiceAgreement:
    booking = _load_booking(db, booking_id)
    require_party(booking, actor_id, "view the agreement of")
    agreement = crud_service_agreement.get_agreement_by_booking(db, booking.id)
    if agreement is None:
        raise NotFoundError("Service agreement not found", {"booking_id": "No agreement"})
    return agreement


def get_agreement_by_id(db: Session, agreement_id: int, actor_id: int) -> models.ServiceAgreement:
    agreement = _load_agreement(db, agreement_id)
    require_party(agreement.booking, actor_id, "view the agreement of")
    return agreement


def update_agreement(
    db: Session,
    agreement_id: int,
    actor_id: int,
    updates: schemas.ServiceAgreementUpdate,
) -> models.ServiceAgreement:
    """Replace the supplied fields of an unsigned agreement.

    Supplied deliverable and milestone lists replace the stored ones whole,
    with fresh ids and PENDING status.
    """
    data = {}
    if updates.custom_terms:
        data["terms"] = updates.custom_terms
    if updates.cancellation_policy:
        data["cancellation_policy"] = updates.cancellation_policy
    if updates.deliverables is not None:
        data["deliverables"] = crud_service_agreement.dump_deliverables(
            agreement_templates.deliverables_from_input(updates.deliverables)
        )
    if updates.payment_schedule is not None:
        data["payment_schedule"] = crud_service_agreement.dump_payment_schedule(
            agreement_templates.milestones_from_input(updates.payment_schedule)
        )
    if not data:
        raise InputValidationError("No updates supplied", {"body": "Empty update"})

    with transaction(db):
        agreement = _load_agreement(db, agreement_id)
        require_party(agreement.booking, actor_id, "update the agreement of")
        if agreement.signed_at is not None:
            raise AlreadySignedError(
                "Cannot update a signed agreement",
                {"agreement_id": "Signed"},
            )
        crud_service_agreement.update_agreement(db, agreement, data)

    logger.info("Service agreement %s updated: %s", agreement_id, sorted(data))
    return agreement


def sign_agreement(
    db: Session,
    agreement_id: int,
    actor_id: int,
    signature_in: schemas.SignatureRequest,
) -> models.ServiceAgreement:
    """Record one party's signature; the second one confirms the booking.

    The confirming status change goes through the same transition path as a
    manual update, so the listing counter and the double-booking guard apply,
    and the signature rolls back with it on failure.
    """
    with transaction(db):
        agreement = _load_agreement(db, agreement_id)
        booking = agreement.booking
        role = require_party(booking, actor_id, "sign the agreement of")
        signature_type = signature_in.signature_type
        if SIGNER_ROLES[signature_type] is not role:
            logger.warning(
                "User %s (%s) attempted a %s signature on agreement %s",
                actor_id,
                role.value,
                signature_type.value,
                agreement.id,
            )
            raise RoleNotPermittedError(
                f"Only the {SIGNER_ROLES[signature_type].value} can sign as {signature_type.value}",
                {"signature_type": "Role mismatch"},
            )
        if agreement.signed_at is not None:
            raise AlreadySignedError(
                "Agreement is already fully signed",
                {"agreement_id": "Signed"},
            )

        party = role.value
        if signature_type == models.SignatureType.ORGANIZER:
            if agreement.organizer_signature:
                raise AlreadySignedError(
                    "Organizer has already signed this agreement",
                    {"signature_type": "Already signed"},
                )
            agreement.organizer_signature = signature_in.signature
        else:
            if agreement.vendor_signature:
                raise AlreadySignedError(
                    "Vendor has already signed this agreement",
                    {"signature_type": "Already signed"},
                )
            agreement.vendor_signature = signature_in.signature

        now = utcnow()
        metadata = dict(agreement.signature_metadata or {})
        metadata[party] = {
            "ip_address": signature_in.ip_address,
            "user_agent": signature_in.user_agent,
            "signed_at": now.isoformat(),
        }
        agreement.signature_metadata = metadata

        fully_signed = bool(agreement.organizer_signature and agreement.vendor_signature)
        if fully_signed:
            agreement.signed_at = now
            if booking.status != models.BookingStatus.CONFIRMED:
                # Organizer or vendor may trigger this; CONFIRMED has no role gate
                validate_transition(booking.status, models.BookingStatus.CONFIRMED, role)
                apply_status_change(db, booking, models.BookingStatus.CONFIRMED)
        db.add(agreement)
        db.flush()

    logger.info(
        "Agreement %s signed by %s %s; fully_signed=%s",
        agreement_id,
        party,
        actor_id,
        fully_signed,
    )
    return agreement


def update_deliverable_status(
    db: Session,
    agreement_id: int,
    deliverable_id: str,
    actor_id: int,
    status: models.DeliverableStatus,
) -> models.ServiceAgreement:
    with transaction(db):
        agreement = _load_agreement(db, agreement_id)
        require_party(agreement.booking, actor_id, "update deliverables of")
        deliverables = crud_service_agreement.load_deliverables(agreement)
        target = next((d for d in deliverables if d.id == deliverable_id), None)
        if target is None:
            raise NotFoundError("Deliverable not found", {"deliverable_id": "Not found"})

        previous = target.status
        target.status = status
        if status == models.DeliverableStatus.COMPLETED and previous != status:
            target.completed_at = utcnow()
        crud_service_agreement.update_agreement(
            db,
            agreement,
            {"deliverables": crud_service_agreement.dump_deliverables(deliverables)},
        )

    logger.info(
        "Deliverable %s on agreement %s: %s -> %s",
        deliverable_id,
        agreement_id,
        previous.value,
        status.value,
    )
    return agreement


def update_milestone_status(
    db: Session,
    agreement_id: int,
    milestone_id: str,
    actor_id: int,
    status: models.MilestoneStatus,
) -> models.ServiceAgreement:
    with transaction(db):
        agreement = _load_agreement(db, agreement_id)
        require_party(agreement.booking, actor_id, "update payments of")
        schedule = crud_service_agreement.load_payment_schedule(agreement)
        target = next((m for m in schedule if m.id == milestone_id), None)
        if target is None:
            raise NotFoundError("Payment milestone not found", {"milestone_id": "Not found"})

        previous = target.status
        target.status = status
        if status == models.MilestoneStatus.PAID and previous != status:
            target.paid_at = utcnow()
        crud_service_agreement.update_agreement(
            db,
            agreement,
            {"payment_schedule": crud_service_agreement.dump_payment_schedule(schedule)},
        )

    logger.info(
        "Milestone %s on agreement %s: %s -> %s",
        milestone_id,
        agreement_id,
        previous.value,
        status.value,
    )
    return agreement


def _percent(done: int, total: int) -> float:
    return (done / total) * 100 if total > 0 else 100.0


def get_agreement_progress(
    db: Session, agreement_id: int, actor_id: int
) -> schemas.AgreementProgress:
    agreement = get_agreement_by_id(db, agreement_id, actor_id)
    deliverables = crud_service_agreement.load_deliverables(agreement)
    schedule = crud_service_agreement.load_payment_schedule(agreement)

    def count_deliverables(status: models.DeliverableStatus) -> int:
        return sum(1 for d in deliverables if d.status == status)

    paid = [m for m in schedule if m.status == models.MilestoneStatus.PAID]
    deliverable_progress = schemas.DeliverableProgress(
        total=len(deliverables),
        pending=count_deliverables(models.DeliverableStatus.PENDING),
        in_progress=count_deliverables(models.DeliverableStatus.IN_PROGRESS),
        completed=count_deliverables(models.DeliverableStatus.COMPLETED),
        overdue=count_deliverables(models.DeliverableStatus.OVERDUE),
    )
    payment_progress = schemas.PaymentProgress(
        total=len(schedule),
        pending=sum(1 for m in schedule if m.status == models.MilestoneStatus.PENDING),
        paid=len(paid),
        overdue=sum(1 for m in schedule if m.status == models.MilestoneStatus.OVERDUE),
        total_amount=sum((m.amount for m in schedule), Decimal("0")),
        paid_amount=sum((m.amount for m in paid), Decimal("0")),
    )
    return schemas.AgreementProgress(
        agreement_id=agreement.id,
        is_signed=agreement.signed_at is not None,
        organizer_signed=bool(agreement.organizer_signature),
        vendor_signed=bool(agreement.vendor_signature),
        deliverable_progress=deliverable_progress,
        payment_progress=payment_progress,
        overall_progress=schemas.OverallProgress(
            deliverables_complete=_percent(deliverable_progress.completed, deliverable_progress.total),
            payments_complete=_percent(payment_progress.paid, payment_progress.total),
        ),
    )


def list_agreement_templates() -> List[schemas.AgreementTemplateRead]:
    return agreement_templates.list_agreement_templates()
