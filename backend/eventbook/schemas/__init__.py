from .availability import AvailabilityRules, CustomAvailabilitySlot, TimeSlot, WEEKDAYS
from .booking import (
    BudgetRange,
    BookingRequestCreate,
    BookingRequestUpdate,
    BookingCancel,
    BookingRequestResponse,
    MediaAttachment,
    BookingMessageCreate,
    BookingMessageResponse,
    TimelineEntry,
    BookingStatistics,
)
from .agreement import (
    DeliverableIn,
    Deliverable,
    PaymentMilestoneIn,
    PaymentMilestone,
    DeliverableTemplate,
    MilestoneTemplate,
    AgreementTemplate,
    AgreementTemplateRead,
    ServiceAgreementCreate,
    ServiceAgreementUpdate,
    SignatureRequest,
    ServiceAgreementResponse,
    DeliverableStatusUpdate,
    MilestoneStatusUpdate,
    DeliverableProgress,
    PaymentProgress,
    OverallProgress,
    AgreementProgress,
)

__all__ = [
    "AvailabilityRules",
    "CustomAvailabilitySlot",
    "TimeSlot",
    "WEEKDAYS",
    "BudgetRange",
    "BookingRequestCreate",
    "BookingRequestUpdate",
    "BookingCancel",
    "BookingRequestResponse",
    "MediaAttachment",
    "BookingMessageCreate",
    "BookingMessageResponse",
    "TimelineEntry",
    "BookingStatistics",
    "DeliverableIn",
    "Deliverable",
    "PaymentMilestoneIn",
    "PaymentMilestone",
    "DeliverableTemplate",
    "MilestoneTemplate",
    "AgreementTemplate",
    "AgreementTemplateRead",
    "ServiceAgreementCreate",
    "ServiceAgreementUpdate",
    "SignatureRequest",
    "ServiceAgreementResponse",
    "DeliverableStatusUpdate",
    "MilestoneStatusUpdate",
    "DeliverableProgress",
    "PaymentProgress",
    "OverallProgress",
    "AgreementProgress",
]
