from datetime import timedelta
from decimal import Decimal

import pytest

from eventbook import models, schemas
from eventbook.crud import crud_service_agreement
from eventbook.services import agreement_service, booking_service
from eventbook.utils.errors import (
    AlreadyExistsError,
    AlreadySignedError,
    ConflictError,
    ForbiddenError,
    InputValidationError,
    InvalidStateError,
    NotFoundError,
    RoleNotPermittedError,
)

from marketplace_seed import (
    advance_to_quote_accepted,
    booking_payload,
    seed_marketplace,
    setup_db,
)

S = models.BookingStatus
ORGANIZER = models.SignatureType.ORGANIZER
VENDOR = models.SignatureType.VENDOR


def accepted_booking(category="CATERING"):
    db = setup_db()()
    seed = seed_marketplace(db, category=category)
    booking = booking_service.create_booking(db, seed.organizer.id, booking_payload(seed))
    advance_to_quote_accepted(db, seed, booking.id)
    return db, seed, booking


def generate(db, seed, booking, **fields):
    return agreement_service.generate_agreement(
        db,
        seed.organizer.id,
        schemas.ServiceAgreementCreate(booking_id=booking.id, **fields),
    )


def sign(db, agreement, actor_id, signature_type, token="sig-token"):
    return agreement_service.sign_agreement(
        db,
        agreement.id,
        actor_id,
        schemas.SignatureRequest(signature_type=signature_type, signature=token, ip_address="10.0.0.1"),
    )


def test_happy_path_generate_sign_confirm():
    db, seed, booking = accepted_booking()
    agreement = generate(db, seed, booking, template_id="catering-template")

    deliverables = crud_service_agreement.load_deliverables(agreement)
    schedule = crud_service_agreement.load_payment_schedule(agreement)
    assert len(deliverables) == 4
    assert [m.amount for m in schedule] == [Decimal("500.00"), Decimal("500.00")]
    assert sum(m.amount for m in schedule) == Decimal("1000")
    assert agreement.terms.startswith("CATERING SERVICE AGREEMENT")

    sign(db, agreement, seed.organizer.id, ORGANIZER)
    db.refresh(booking)
    assert booking.status == S.QUOTE_ACCEPTED
    assert agreement.signed_at is None

    signed = sign(db, agreement, seed.vendor_user.id, VENDOR)
    assert signed.signed_at is not None
    assert set(signed.signature_metadata) == {"organizer", "vendor"}
    assert signed.signature_metadata["organizer"]["ip_address"] == "10.0.0.1"

    db.refresh(booking)
    db.refresh(seed.listing)
    assert booking.status == S.CONFIRMED
    assert seed.listing.booking_count == 1


def test_vendor_may_sign_before_organizer():
    db, seed, booking = accepted_booking()
    agreement = generate(db, seed, booking)

    sign(db, agreement, seed.vendor_user.id, VENDOR)
    db.refresh(booking)
    assert booking.status == S.QUOTE_ACCEPTED
    assert agreement.signed_at is None

    signed = sign(db, agreement, seed.organizer.id, ORGANIZER)
    assert signed.signed_at is not None
    db.refresh(booking)
    db.refresh(seed.listing)
    assert booking.status == S.CONFIRMED
    assert seed.listing.booking_count == 1

    with pytest.raises(AlreadySignedError):
        sign(db, agreement, seed.vendor_user.id, VENDOR, token="again")


def test_category_picks_template_when_none_given():
    db, seed, booking = accepted_booking(category="VIDEOGRAPHY")
    agreement = agreement_service.generate_for_booking(db, booking.id, seed.vendor_user.id)
    assert agreement.terms.startswith("PHOTOGRAPHY SERVICE AGREEMENT")
    schedule = crud_service_agreement.load_payment_schedule(agreement)
    # Deposit 50%, generic 1/3, final 50%
    assert [m.amount for m in schedule] == [Decimal("500.00"), Decimal("333.33"), Decimal("500.00")]


def test_template_dates_never_land_after_event():
    db, seed, booking = accepted_booking(category="PHOTOGRAPHY")
    agreement = generate(db, seed, booking)
    event_day = booking.service_date
    for item in crud_service_agreement.load_deliverables(agreement):
        assert item.due_date.date() <= event_day + timedelta(days=1)


def test_custom_fields_win_over_template():
    db, seed, booking = accepted_booking()
    due = booking.service_date
    agreement = generate(
        db,
        seed,
        booking,
        template_id="venue-template",
        custom_terms="Custom terms for [EVENT_NAME]",
        cancellation_policy="No refunds",
        deliverables=[{"title": "Tasting", "description": "", "due_date": f"{due}T10:00:00"}],
    )
    assert agreement.terms == "Custom terms for Spring Gala"
    assert agreement.cancellation_policy == "No refunds"
    deliverables = crud_service_agreement.load_deliverables(agreement)
    assert [d.title for d in deliverables] == ["Tasting"]
    assert deliverables[0].status == models.DeliverableStatus.PENDING
    # Empty schedule still comes from the template
    assert len(crud_service_agreement.load_payment_schedule(agreement)) == 2


def test_generate_preconditions():
    db = setup_db()()
    seed = seed_marketplace(db)
    booking = booking_service.create_booking(db, seed.organizer.id, booking_payload(seed))
    with pytest.raises(InvalidStateError):
        generate(db, seed, booking)
    with pytest.raises(NotFoundError):
        agreement_service.generate_agreement(
            db, seed.organizer.id, schemas.ServiceAgreementCreate(booking_id=999)
        )
    advance_to_quote_accepted(db, seed, booking.id)
    with pytest.raises(ForbiddenError):
        agreement_service.generate_agreement(
            db, seed.outsider.id, schemas.ServiceAgreementCreate(booking_id=booking.id)
        )


def test_unknown_template_uses_caller_fields_only():
    db, seed, booking = accepted_booking()
    agreement = generate(
        db,
        seed,
        booking,
        template_id="missing-template",
        custom_terms="Terms for [EVENT_NAME]",
    )
    assert agreement.terms == "Terms for Spring Gala"
    assert agreement.cancellation_policy == ""
    assert crud_service_agreement.load_deliverables(agreement) == []
    assert crud_service_agreement.load_payment_schedule(agreement) == []


def test_second_generate_fails_and_keeps_original():
    db, seed, booking = accepted_booking()
    first = generate(db, seed, booking, custom_terms="Original")
    with pytest.raises(AlreadyExistsError):
        generate(db, seed, booking, custom_terms="Replacement")

    stored = agreement_service.get_agreement(db, booking.id, seed.vendor_user.id)
    assert stored.id == first.id
    assert stored.terms == "Original"
    assert db.query(models.ServiceAgreement).count() == 1


def test_signature_protocol_errors():
    db, seed, booking = accepted_booking()
    agreement = generate(db, seed, booking)

    with pytest.raises(RoleNotPermittedError):
        sign(db, agreement, seed.vendor_user.id, ORGANIZER)
    with pytest.raises(ForbiddenError):
        sign(db, agreement, seed.outsider.id, ORGANIZER)

    sign(db, agreement, seed.organizer.id, ORGANIZER)
    with pytest.raises(AlreadySignedError):
        sign(db, agreement, seed.organizer.id, ORGANIZER)

    sign(db, agreement, seed.vendor_user.id, VENDOR)
    with pytest.raises(AlreadySignedError):
        sign(db, agreement, seed.vendor_user.id, VENDOR)


def test_sign_rolls_back_when_date_taken():
    db = setup_db()()
    seed = seed_marketplace(db)
    a = booking_service.create_booking(db, seed.organizer.id, booking_payload(seed))
    b = booking_service.create_booking(db, seed.organizer.id, booking_payload(seed))
    advance_to_quote_accepted(db, seed, a.id)
    advance_to_quote_accepted(db, seed, b.id)
    agreement = generate(db, seed, b)
    booking_service.update_booking_status(
        db, a.id, seed.vendor_user.id, schemas.BookingRequestUpdate(status=S.CONFIRMED)
    )

    sign(db, agreement, seed.organizer.id, ORGANIZER)
    with pytest.raises(ConflictError):
        sign(db, agreement, seed.vendor_user.id, VENDOR)

    db.refresh(agreement)
    db.refresh(b)
    assert agreement.vendor_signature is None
    assert agreement.signed_at is None
    assert b.status == S.QUOTE_ACCEPTED


def test_update_agreement_replaces_lists_until_signed():
    db, seed, booking = accepted_booking()
    agreement = generate(db, seed, booking)
    due = f"{booking.service_date}T09:00:00"

    updated = agreement_service.update_agreement(
        db,
        agreement.id,
        seed.vendor_user.id,
        schemas.ServiceAgreementUpdate(
            payment_schedule=[{"title": "Single payment", "amount": "1000", "due_date": due}],
        ),
    )
    schedule = crud_service_agreement.load_payment_schedule(updated)
    assert [m.title for m in schedule] == ["Single payment"]
    assert schedule[0].id.startswith("mil_")

    with pytest.raises(InputValidationError):
        agreement_service.update_agreement(
            db, agreement.id, seed.vendor_user.id, schemas.ServiceAgreementUpdate()
        )

    sign(db, agreement, seed.organizer.id, ORGANIZER)
    sign(db, agreement, seed.vendor_user.id, VENDOR)
    with pytest.raises(AlreadySignedError):
        agreement_service.update_agreement(
            db, agreement.id, seed.organizer.id, schemas.ServiceAgreementUpdate(custom_terms="Late")
        )


def test_deliverable_status_round_trip_keeps_completed_at():
    db, seed, booking = accepted_booking()
    agreement = generate(db, seed, booking)
    target = crud_service_agreement.load_deliverables(agreement)[0].id

    agreement_service.update_deliverable_status(
        db, agreement.id, target, seed.vendor_user.id, models.DeliverableStatus.COMPLETED
    )
    completed = crud_service_agreement.load_deliverables(
        agreement_service.get_agreement_by_id(db, agreement.id, seed.vendor_user.id)
    )[0]
    assert completed.status == models.DeliverableStatus.COMPLETED
    assert completed.completed_at is not None

    agreement_service.update_deliverable_status(
        db, agreement.id, target, seed.vendor_user.id, models.DeliverableStatus.IN_PROGRESS
    )
    reverted = crud_service_agreement.load_deliverables(
        agreement_service.get_agreement_by_id(db, agreement.id, seed.vendor_user.id)
    )[0]
    assert reverted.status == models.DeliverableStatus.IN_PROGRESS
    assert reverted.completed_at == completed.completed_at

    with pytest.raises(NotFoundError):
        agreement_service.update_deliverable_status(
            db, agreement.id, "del_missing", seed.vendor_user.id, models.DeliverableStatus.COMPLETED
        )


def test_progress_tracks_deliverables_and_payments():
    db, seed, booking = accepted_booking()
    agreement = generate(db, seed, booking)
    deliverable_id = crud_service_agreement.load_deliverables(agreement)[0].id
    milestone_id = crud_service_agreement.load_payment_schedule(agreement)[0].id

    agreement_service.update_deliverable_status(
        db, agreement.id, deliverable_id, seed.vendor_user.id, models.DeliverableStatus.COMPLETED
    )
    agreement_service.update_milestone_status(
        db, agreement.id, milestone_id, seed.organizer.id, models.MilestoneStatus.PAID
    )
    with pytest.raises(NotFoundError):
        agreement_service.update_milestone_status(
            db, agreement.id, "mil_missing", seed.organizer.id, models.MilestoneStatus.PAID
        )

    progress = agreement_service.get_agreement_progress(db, agreement.id, seed.organizer.id)
    assert progress.is_signed is False
    assert progress.deliverable_progress.total == 4
    assert progress.deliverable_progress.completed == 1
    assert progress.deliverable_progress.pending == 3
    assert progress.payment_progress.paid == 1
    assert progress.payment_progress.total_amount == Decimal("1000.00")
    assert progress.payment_progress.paid_amount == Decimal("500.00")
    assert progress.overall_progress.deliverables_complete == pytest.approx(25.0)
    assert progress.overall_progress.payments_complete == pytest.approx(50.0)


def test_progress_of_empty_agreement_is_complete():
    db, seed, booking = accepted_booking()
    agreement = generate(db, seed, booking)
    crud_service_agreement.update_agreement(db, agreement, {"deliverables": [], "payment_schedule": []})
    db.commit()

    progress = agreement_service.get_agreement_progress(db, agreement.id, seed.vendor_user.id)
    assert progress.deliverable_progress.total == 0
    assert progress.overall_progress.deliverables_complete == 100
    assert progress.overall_progress.payments_complete == 100
    assert progress.payment_progress.total_amount == 0


def test_list_templates_via_service():
    templates = agreement_service.list_agreement_templates()
    assert {t.id for t in templates} == {"catering-template", "photography-template", "venue-template"}
