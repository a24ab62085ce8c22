from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..models.service_agreement import DeliverableStatus, MilestoneStatus, SignatureType


# --- Deliverables & payment milestones (stored as JSON on the agreement) ---

class DeliverableIn(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    due_date: datetime


class Deliverable(DeliverableIn):
    id: str
    status: DeliverableStatus = DeliverableStatus.PENDING
    completed_at: Optional[datetime] = None


class PaymentMilestoneIn(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    due_date: datetime


class PaymentMilestone(PaymentMilestoneIn):
    id: str
    status: MilestoneStatus = MilestoneStatus.PENDING
    paid_at: Optional[datetime] = None


# --- Templates (immutable, process-wide) ---

class DeliverableTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    due_in_days: int


class MilestoneTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    due_in_days: int
    # Always 0 in templates; the real amount is allocated per booking
    amount: Decimal = Decimal("0")


class AgreementTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str
    terms: str
    deliverable_templates: Tuple[DeliverableTemplate, ...]
    payment_schedule_template: Tuple[MilestoneTemplate, ...]
    cancellation_policy: str


class AgreementTemplateRead(BaseModel):
    """A template with its relative due dates resolved against the current time."""

    id: str
    name: str
    category: str
    terms: str
    deliverable_templates: List[DeliverableIn]
    payment_schedule_template: List[PaymentMilestoneIn]
    cancellation_policy: str


# --- Agreement lifecycle payloads ---

class ServiceAgreementCreate(BaseModel):
    booking_id: int
    template_id: Optional[str] = None
    custom_terms: Optional[str] = None
    deliverables: List[DeliverableIn] = Field(default_factory=list)
    payment_schedule: List[PaymentMilestoneIn] = Field(default_factory=list)
    cancellation_policy: Optional[str] = None


class ServiceAgreementUpdate(BaseModel):
    custom_terms: Optional[str] = None
    deliverables: Optional[List[DeliverableIn]] = None
    payment_schedule: Optional[List[PaymentMilestoneIn]] = None
    cancellation_policy: Optional[str] = None


class SignatureRequest(BaseModel):
    signature_type: SignatureType
    # Opaque token from the e-signature provider; never verified here
    signature: str = Field(min_length=1)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class ServiceAgreementResponse(BaseModel):
    id: int
    booking_id: int
    terms: str
    deliverables: List[Deliverable]
    payment_schedule: List[PaymentMilestone]
    cancellation_policy: str
    organizer_signature: Optional[str] = None
    vendor_signature: Optional[str] = None
    signed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DeliverableStatusUpdate(BaseModel):
    status: DeliverableStatus


class MilestoneStatusUpdate(BaseModel):
    status: MilestoneStatus


# --- Progress ---

class DeliverableProgress(BaseModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    overdue: int


class PaymentProgress(BaseModel):
    total: int
    pending: int
    paid: int
    overdue: int
    total_amount: Decimal
    paid_amount: Decimal


class OverallProgress(BaseModel):
    deliverables_complete: float
    payments_complete: float


class AgreementProgress(BaseModel):
    agreement_id: int
    is_signed: bool
    organizer_signed: bool
    vendor_signed: bool
    deliverable_progress: DeliverableProgress
    payment_progress: PaymentProgress
    overall_progress: OverallProgress
