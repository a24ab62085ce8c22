from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session, joinedload

from .. import models, schemas


def dump_deliverables(items: Sequence[schemas.Deliverable]) -> List[dict]:
    return [item.model_dump(mode="json") for item in items]


def dump_payment_schedule(items: Sequence[schemas.PaymentMilestone]) -> List[dict]:
    return [item.model_dump(mode="json") for item in items]


def load_deliverables(agreement: models.ServiceAgreement) -> List[schemas.Deliverable]:
    return [schemas.Deliverable.model_validate(d) for d in agreement.deliverables or []]


def load_payment_schedule(agreement: models.ServiceAgreement) -> List[schemas.PaymentMilestone]:
    return [schemas.PaymentMilestone.model_validate(m) for m in agreement.payment_schedule or []]


def create_agreement(
    db: Session,
    *,
    booking_id: int,
    terms: str,
    deliverables: Sequence[schemas.Deliverable],
    payment_schedule: Sequence[schemas.PaymentMilestone],
    cancellation_policy: str,
) -> models.ServiceAgreement:
    db_agreement = models.ServiceAgreement(
        booking_id=booking_id,
        terms=terms,
        deliverables=dump_deliverables(deliverables),
        payment_schedule=dump_payment_schedule(payment_schedule),
        cancellation_policy=cancellation_policy,
    )
    db.add(db_agreement)
    db.flush()
    return db_agreement


def get_agreement(db: Session, agreement_id: int) -> Optional[models.ServiceAgreement]:
    return (
        db.query(models.ServiceAgreement)
        .options(joinedload(models.ServiceAgreement.booking))
        .filter(models.ServiceAgreement.id == agreement_id)
        .first()
    )


def get_agreement_by_booking(db: Session, booking_id: int) -> Optional[models.ServiceAgreement]:
    return (
        db.query(models.ServiceAgreement)
        .filter(models.ServiceAgreement.booking_id == booking_id)
        .first()
    )


def update_agreement(
    db: Session,
    db_agreement: models.ServiceAgreement,
    update_data: Dict[str, Any],
) -> models.ServiceAgreement:
    # JSON columns only register a change on reassignment, so callers pass
    # freshly built lists rather than mutating the stored ones.
    for key, value in update_data.items():
        setattr(db_agreement, key, value)
    db.add(db_agreement)
    return db_agreement
