from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from eventbook import schemas
from eventbook.services import agreement_templates as at

NOW = datetime(2030, 1, 1, 12, 0, 0)


def milestone(title):
    return schemas.MilestoneTemplate(title=title, description="", due_in_days=1)


def test_registry_contents():
    ids = [t.id for t in at.AGREEMENT_TEMPLATES]
    assert ids == ["catering-template", "photography-template", "venue-template"]

    catering = at.get_template("catering-template")
    assert [d.title for d in catering.deliverable_templates] == [
        "Menu Finalization",
        "Equipment Setup",
        "Food Service",
        "Cleanup",
    ]
    assert [m.due_in_days for m in catering.payment_schedule_template] == [3, 32]
    assert len(at.get_template("photography-template").payment_schedule_template) == 3
    assert at.get_template("nope") is None


def test_templates_are_immutable():
    template = at.get_template("venue-template")
    with pytest.raises(ValidationError):
        template.name = "Changed"


@pytest.mark.parametrize(
    "category, expected",
    [
        ("CATERING", "catering-template"),
        ("photography", "photography-template"),
        ("VIDEOGRAPHY", "photography-template"),
        ("VENUE", "venue-template"),
        ("FLORIST", "catering-template"),
        (None, "catering-template"),
    ],
)
def test_template_for_category(category, expected):
    assert at.template_for_category(category).id == expected


def test_list_templates_materializes_dates():
    listed = at.list_agreement_templates(now=NOW)
    venue = listed[2]
    assert venue.deliverable_templates[0].due_date == NOW + timedelta(days=14)
    assert venue.payment_schedule_template[1].due_date == NOW + timedelta(days=7)
    assert venue.payment_schedule_template[1].amount == 0


def test_adjust_date_keeps_dates_before_event():
    template_date = NOW + timedelta(days=14)
    assert at.adjust_date_for_event(template_date, date(2030, 3, 1), now=NOW) == template_date


def test_adjust_date_pulls_late_dates_before_event():
    # Event 10 days out (ceil of 9.5 days); 0.8 * 10 = 8 days from now
    event_day = date(2030, 1, 11)
    adjusted = at.adjust_date_for_event(NOW + timedelta(days=30), event_day, now=NOW)
    assert adjusted == NOW + timedelta(days=8)


def test_adjust_date_never_before_tomorrow():
    adjusted = at.adjust_date_for_event(NOW + timedelta(days=30), date(2030, 1, 1), now=NOW)
    assert adjusted == NOW + timedelta(days=1)


def test_milestone_amounts_by_title():
    schedule = [milestone("Deposit"), milestone("Progress"), milestone("Final Payment")]
    total = Decimal("1000")
    amounts = [at.calculate_milestone_amount(m, total, schedule) for m in schedule]
    # Not rebalanced: 500 + 333.33 + 500
    assert amounts == [Decimal("500.00"), Decimal("333.33"), Decimal("500.00")]


def test_deposit_keyword_checked_before_final():
    schedule = [milestone("Final deposit"), milestone("Other")]
    assert at.calculate_milestone_amount(schedule[0], Decimal("90"), schedule) == Decimal("45.00")
    assert at.calculate_milestone_amount(schedule[1], Decimal("90"), schedule) == Decimal("45.00")


def test_zero_total_allocates_zero():
    schedule = [milestone("Deposit")]
    assert at.calculate_milestone_amount(schedule[0], None, schedule) == Decimal("0.00")


def test_personalize_terms():
    booking = SimpleNamespace(
        event=SimpleNamespace(name="Spring Gala"),
        service_date=date(2030, 4, 5),
        organizer=SimpleNamespace(name="Olivia Organizer"),
        vendor=SimpleNamespace(business_name="Tasty Bites"),
        service_listing=SimpleNamespace(title="Gala Catering"),
        final_price=None,
        quoted_price=Decimal("1000"),
    )
    terms = "[EVENT_NAME] on [EVENT_DATE]: [VENDOR_NAME] serves [ORGANIZER_NAME] ([SERVICE_NAME]) for [TOTAL_AMOUNT]. [EVENT_NAME]!"
    assert at.personalize_terms(terms, booking) == (
        "Spring Gala on 04/05/2030: Tasty Bites serves Olivia Organizer "
        "(Gala Catering) for $1000.00. Spring Gala!"
    )


def test_instantiate_catering_for_booking():
    booking = SimpleNamespace(
        service_date=(NOW + timedelta(days=40)).date(),
        final_price=Decimal("1000"),
        quoted_price=Decimal("800"),
    )
    template = at.get_template("catering-template")
    deliverables = at.instantiate_deliverables(template, booking, NOW)
    schedule = at.instantiate_payment_schedule(template, booking, NOW)

    assert len(deliverables) == 4
    assert all(d.id.startswith("del_") for d in deliverables)
    assert len({d.id for d in deliverables}) == 4
    assert [m.amount for m in schedule] == [Decimal("500.00"), Decimal("500.00")]
    assert all(m.id.startswith("mil_") and m.status == "PENDING" for m in schedule)
