"""Agreement template registry and the instantiation algorithms.

Templates carry relative due dates (``due_in_days`` from "now"); they are
materialized at generation time and pulled in before the event date when
they would land after it.
"""

from __future__ import annotations

import math
import uuid
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .. import models, schemas
from ..core.config import settings
from ..models.service_listing import ServiceCategory
from ..utils.time import utcnow

CENTS = Decimal("0.01")
SECONDS_PER_DAY = 24 * 60 * 60

DT = schemas.DeliverableTemplate
MT = schemas.MilestoneTemplate


CATERING_TERMS = """
CATERING SERVICE AGREEMENT

This agreement is entered into between the Event Organizer and the Catering Service Provider for the provision of catering services.

1. SCOPE OF SERVICES
The Vendor agrees to provide catering services as specified in the booking request, including but not limited to:
- Food preparation and service
- Setup and cleanup
- Service staff as required
- All necessary equipment and supplies

2. QUALITY STANDARDS
All food and beverages shall be prepared in accordance with local health regulations and industry standards. The Vendor warrants that all food will be fresh, properly prepared, and safe for consumption.

3. CANCELLATION AND CHANGES
Changes to the order must be made at least 48 hours in advance. Cancellations made less than 72 hours before the event may be subject to cancellation fees.

4. LIABILITY
The Vendor maintains appropriate insurance coverage and agrees to indemnify the Organizer against claims arising from the provision of services.

5. FORCE MAJEURE
Neither party shall be liable for delays or failures in performance resulting from circumstances beyond their reasonable control.
""".strip()

CATERING_CANCELLATION = """
CANCELLATION POLICY

- Cancellations made more than 30 days before the event: Full refund minus 10% processing fee
- Cancellations made 15-30 days before the event: 50% refund
- Cancellations made 7-14 days before the event: 25% refund
- Cancellations made less than 7 days before the event: No refund

Changes to guest count:
- Increases can be accommodated up to 48 hours before the event (subject to availability)
- Decreases of more than 10% made less than 72 hours before the event may incur charges
""".strip()

PHOTOGRAPHY_TERMS = """
PHOTOGRAPHY SERVICE AGREEMENT

This agreement is entered into between the Event Organizer and the Photography Service Provider for the provision of photography services.

1. SCOPE OF SERVICES
The Photographer agrees to provide photography services including:
- Event coverage as specified in the booking
- Professional editing and post-processing
- Digital delivery of final images
- Usage rights as specified

2. DELIVERABLES
- High-resolution edited images
- Online gallery for viewing and downloading
- Print release for personal use
- Delivery within specified timeframe

3. COPYRIGHT AND USAGE
The Photographer retains copyright to all images. The Client receives usage rights for personal and promotional use as specified in this agreement.

4. CANCELLATION POLICY
Cancellation terms and refund policies are outlined in the attached schedule.

5. LIABILITY
The Photographer's liability is limited to the amount paid for services. The Photographer is not responsible for missed shots due to circumstances beyond their control.
""".strip()

PHOTOGRAPHY_CANCELLATION = """
PHOTOGRAPHY CANCELLATION POLICY

- Cancellations made more than 60 days before the event: Full refund minus $100 processing fee
- Cancellations made 30-60 days before the event: 75% refund
- Cancellations made 14-29 days before the event: 50% refund
- Cancellations made 7-13 days before the event: 25% refund
- Cancellations made less than 7 days before the event: No refund

Weather Policy:
- For outdoor events, alternative indoor locations or rescheduling options will be discussed
- No additional charges for reasonable weather-related adjustments
""".strip()

VENUE_TERMS = """
VENUE RENTAL AGREEMENT

This agreement is entered into between the Event Organizer and the Venue Provider for the rental of event space.

1. VENUE USAGE
The Venue agrees to provide the specified space for the agreed-upon date and time, including:
- Access to the rental space
- Basic utilities (electricity, water, heating/cooling)
- Parking facilities as available
- Security as specified

2. RESTRICTIONS
The Client agrees to comply with all venue policies including:
- Occupancy limits
- Noise restrictions
- Decoration guidelines
- Catering restrictions
- Alcohol policies

3. DAMAGE AND LIABILITY
The Client is responsible for any damage to the venue beyond normal wear and tear. A security deposit may be required.

4. SETUP AND BREAKDOWN
Setup and breakdown times are specified in the booking details. Additional time may be available for an additional fee.

5. FORCE MAJEURE
The Venue is not liable for circumstances beyond its control that may affect the event.
""".strip()

VENUE_CANCELLATION = """
VENUE CANCELLATION POLICY

- Cancellations made more than 90 days before the event: Full refund minus $200 processing fee
- Cancellations made 60-90 days before the event: 80% refund
- Cancellations made 30-59 days before the event: 60% refund
- Cancellations made 14-29 days before the event: 40% refund
- Cancellations made less than 14 days before the event: No refund

Security Deposit:
- Refunded within 14 days after the event if no damage occurs
- Partial refund if minor damage occurs
- May be forfeited for significant damage or policy violations
""".strip()


AGREEMENT_TEMPLATES: Tuple[schemas.AgreementTemplate, ...] = (
    schemas.AgreementTemplate(
        id="catering-template",
        name="Catering Service Agreement",
        category=ServiceCategory.CATERING.value,
        terms=CATERING_TERMS,
        deliverable_templates=(
            DT(title="Menu Finalization", description="Finalize menu selections and dietary requirements", due_in_days=14),
            DT(title="Equipment Setup", description="Setup all catering equipment and stations", due_in_days=30),
            DT(title="Food Service", description="Provide catering service during the event", due_in_days=30),
            DT(title="Cleanup", description="Complete cleanup and equipment removal", due_in_days=30),
        ),
        payment_schedule_template=(
            MT(title="Deposit", description="50% deposit upon agreement signing", due_in_days=3),
            MT(title="Final Payment", description="Remaining balance due after service completion", due_in_days=32),
        ),
        cancellation_policy=CATERING_CANCELLATION,
    ),
    schemas.AgreementTemplate(
        id="photography-template",
        name="Photography Service Agreement",
        category=ServiceCategory.PHOTOGRAPHY.value,
        terms=PHOTOGRAPHY_TERMS,
        deliverable_templates=(
            DT(title="Pre-Event Consultation", description="Discuss shot list and event timeline", due_in_days=7),
            DT(title="Event Photography", description="Provide photography coverage during the event", due_in_days=30),
            DT(title="Image Editing", description="Professional editing and post-processing of selected images", due_in_days=37),
            DT(title="Final Delivery", description="Deliver final edited images via online gallery", due_in_days=44),
        ),
        payment_schedule_template=(
            MT(title="Booking Deposit", description="30% deposit to secure booking", due_in_days=3),
            MT(title="Pre-Event Payment", description="50% payment due 7 days before event", due_in_days=23),
            MT(title="Final Payment", description="Final 20% payment due upon delivery", due_in_days=44),
        ),
        cancellation_policy=PHOTOGRAPHY_CANCELLATION,
    ),
    schemas.AgreementTemplate(
        id="venue-template",
        name="Venue Rental Agreement",
        category=ServiceCategory.VENUE.value,
        terms=VENUE_TERMS,
        deliverable_templates=(
            DT(title="Venue Walkthrough", description="Conduct pre-event venue walkthrough and planning session", due_in_days=14),
            DT(title="Venue Preparation", description="Prepare venue space according to event requirements", due_in_days=30),
            DT(title="Event Day Support", description="Provide on-site support during the event", due_in_days=30),
            DT(title="Post-Event Inspection", description="Conduct post-event inspection and damage assessment", due_in_days=31),
        ),
        payment_schedule_template=(
            MT(title="Security Deposit", description="Refundable security deposit", due_in_days=3),
            MT(title="Rental Payment", description="Full rental payment", due_in_days=7),
        ),
        cancellation_policy=VENUE_CANCELLATION,
    ),
)

_TEMPLATES_BY_ID: Dict[str, schemas.AgreementTemplate] = {t.id: t for t in AGREEMENT_TEMPLATES}

CATEGORY_TEMPLATE_MAP: Dict[str, str] = {
    ServiceCategory.CATERING.value: "catering-template",
    ServiceCategory.PHOTOGRAPHY.value: "photography-template",
    ServiceCategory.VIDEOGRAPHY.value: "photography-template",
    ServiceCategory.VENUE.value: "venue-template",
}


def get_template(template_id: str) -> Optional[schemas.AgreementTemplate]:
    return _TEMPLATES_BY_ID.get(template_id)


def template_for_category(category: Optional[str]) -> schemas.AgreementTemplate:
    """Template for a listing category; unmapped categories get the default."""
    key = (category or "").strip().upper()
    template_id = CATEGORY_TEMPLATE_MAP.get(key, settings.DEFAULT_AGREEMENT_TEMPLATE)
    return _TEMPLATES_BY_ID[template_id]


def list_agreement_templates(now: Optional[datetime] = None) -> List[schemas.AgreementTemplateRead]:
    """All templates with their due dates materialized against ``now``."""
    now = now or utcnow()
    return [
        schemas.AgreementTemplateRead(
            id=t.id,
            name=t.name,
            category=t.category,
            terms=t.terms,
            deliverable_templates=[
                schemas.DeliverableIn(
                    title=d.title,
                    description=d.description,
                    due_date=now + timedelta(days=d.due_in_days),
                )
                for d in t.deliverable_templates
            ],
            payment_schedule_template=[
                schemas.PaymentMilestoneIn(
                    title=m.title,
                    description=m.description,
                    amount=m.amount,
                    due_date=now + timedelta(days=m.due_in_days),
                )
                for m in t.payment_schedule_template
            ],
            cancellation_policy=t.cancellation_policy,
        )
        for t in AGREEMENT_TEMPLATES
    ]


def _as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def _days_between(start: datetime, end: datetime) -> int:
    # Partial days round up
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def adjust_date_for_event(
    template_date: datetime,
    event_date: Union[date, datetime],
    now: Optional[datetime] = None,
) -> datetime:
    """Pull ``template_date`` before the event when it would fall after it.

    A late date is replaced by now + max(1, floor(0.8 * days until event));
    otherwise the template date is returned unchanged.
    """
    now = now or utcnow()
    days_until_event = _days_between(now, _as_datetime(event_date))
    template_days_from_now = _days_between(now, template_date)
    if template_days_from_now > days_until_event:
        adjusted_days = max(1, math.floor(days_until_event * 0.8))
        return now + timedelta(days=adjusted_days)
    return template_date


def calculate_milestone_amount(
    milestone: Union[schemas.MilestoneTemplate, schemas.PaymentMilestoneIn],
    total_amount: Decimal,
    all_milestones: Sequence[object],
) -> Decimal:
    """Allocate a share of ``total_amount`` by milestone title.

    "deposit" gets half, then "final" gets half, anything else gets an even
    share across all milestones. The shares are not rebalanced, so a
    schedule mixing keyword and generic titles may not sum to the total.
    """
    title = milestone.title.lower()
    total = Decimal(total_amount or 0)
    if "deposit" in title:
        amount = total * Decimal("0.5")
    elif "final" in title:
        amount = total * Decimal("0.5")
    else:
        amount = total / len(all_milestones) if all_milestones else Decimal("0")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def booking_total(booking: models.BookingRequest) -> Decimal:
    return Decimal(booking.final_price or booking.quoted_price or 0)


def format_amount(amount: Decimal) -> str:
    return f"{settings.CURRENCY_SYMBOL}{Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)}"


def personalize_terms(terms: str, booking: models.BookingRequest) -> str:
    """Substitute booking details into the bracketed placeholders in ``terms``."""
    replacements = {
        "[EVENT_NAME]": booking.event.name if booking.event else "",
        "[EVENT_DATE]": booking.service_date.strftime("%m/%d/%Y"),
        "[ORGANIZER_NAME]": booking.organizer.name if booking.organizer else "",
        "[VENDOR_NAME]": booking.vendor.business_name if booking.vendor else "",
        "[SERVICE_NAME]": booking.service_listing.title if booking.service_listing else "",
        "[TOTAL_AMOUNT]": format_amount(booking_total(booking)),
    }
    for placeholder, value in replacements.items():
        terms = terms.replace(placeholder, value or "")
    return terms


def new_deliverable_id() -> str:
    return f"del_{uuid.uuid4().hex}"


def new_milestone_id() -> str:
    return f"mil_{uuid.uuid4().hex}"


def deliverables_from_input(items: Sequence[schemas.DeliverableIn]) -> List[schemas.Deliverable]:
    return [
        schemas.Deliverable(id=new_deliverable_id(), **item.model_dump())
        for item in items
    ]


def milestones_from_input(items: Sequence[schemas.PaymentMilestoneIn]) -> List[schemas.PaymentMilestone]:
    return [
        schemas.PaymentMilestone(id=new_milestone_id(), **item.model_dump())
        for item in items
    ]


def instantiate_deliverables(
    template: schemas.AgreementTemplate,
    booking: models.BookingRequest,
    now: Optional[datetime] = None,
) -> List[schemas.Deliverable]:
    now = now or utcnow()
    return [
        schemas.Deliverable(
            id=new_deliverable_id(),
            title=d.title,
            description=d.description,
            due_date=adjust_date_for_event(
                now + timedelta(days=d.due_in_days), booking.service_date, now
            ),
        )
        for d in template.deliverable_templates
    ]


def instantiate_payment_schedule(
    template: schemas.AgreementTemplate,
    booking: models.BookingRequest,
    now: Optional[datetime] = None,
) -> List[schemas.PaymentMilestone]:
    now = now or utcnow()
    total = booking_total(booking)
    schedule = template.payment_schedule_template
    return [
        schemas.PaymentMilestone(
            id=new_milestone_id(),
            title=m.title,
            description=m.description,
            amount=calculate_milestone_amount(m, total, schedule),
            due_date=adjust_date_for_event(
                now + timedelta(days=m.due_in_days), booking.service_date, now
            ),
        )
        for m in schedule
    ]
