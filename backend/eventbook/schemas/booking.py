from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..models.booking_status import BookingStatus
from ..models.booking_message import SenderType


class BudgetRange(BaseModel):
    min: Decimal = Field(ge=0)
    max: Decimal = Field(ge=0)

    @model_validator(mode="after")
    def check_order(self) -> "BudgetRange":
        if self.min > self.max:
            raise ValueError("budget_range.min must not exceed budget_range.max")
        return self


class BookingRequestCreate(BaseModel):
    event_id: int
    service_listing_id: int
    service_date: date
    requirements: str = Field(min_length=1)
    budget_range: Optional[BudgetRange] = None
    additional_notes: Optional[str] = None

    @field_validator("requirements")
    @classmethod
    def requirements_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("requirements must not be blank")
        return v


class BookingRequestUpdate(BaseModel):
    """Partial update; only fields explicitly sent are applied."""

    status: Optional[BookingStatus] = None
    quoted_price: Optional[Decimal] = Field(default=None, ge=0)
    final_price: Optional[Decimal] = Field(default=None, ge=0)
    additional_notes: Optional[str] = None


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingRequestResponse(BaseModel):
    id: int
    event_id: int
    service_listing_id: int
    organizer_id: int
    vendor_id: int
    service_date: date
    requirements: str
    budget_range: Optional[BudgetRange] = None
    quoted_price: Optional[Decimal] = None
    final_price: Optional[Decimal] = None
    additional_notes: Optional[str] = None
    status: BookingStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MediaAttachment(BaseModel):
    url: str = Field(min_length=1)
    type: Literal["IMAGE", "VIDEO", "DOCUMENT"]
    caption: Optional[str] = None


class BookingMessageCreate(BaseModel):
    message: str = Field(min_length=1)
    attachments: List[MediaAttachment] = Field(default_factory=list)

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be blank")
        return v


class BookingMessageResponse(BaseModel):
    id: int
    booking_id: int
    sender_id: int
    sender_type: SenderType
    message: str
    attachments: Optional[List[MediaAttachment]] = None
    sent_at: datetime

    model_config = {"from_attributes": True}


class TimelineEntry(BaseModel):
    type: Literal["status_change", "message"]
    status: str
    timestamp: datetime
    description: str


class BookingStatistics(BaseModel):
    total: int
    pending: int
    confirmed: int
    completed: int
    cancelled: int
    by_status: Dict[str, int]
    conversion_rate: float
    completion_rate: float
