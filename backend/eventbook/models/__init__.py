from .user import User
from .event import Event
from .vendor_profile import VendorProfile
from .service_listing import ServiceListing, ListingStatus, ServiceCategory
from .booking_status import BookingStatus, ACTIVE_BOOKING_STATUSES
from .booking_request import BookingRequest
from .booking_message import BookingMessage, SenderType
from .service_agreement import (
    ServiceAgreement,
    DeliverableStatus,
    MilestoneStatus,
    SignatureType,
)

__all__ = [
    "User",
    "Event",
    "VendorProfile",
    "ServiceListing",
    "ListingStatus",
    "ServiceCategory",
    "BookingStatus",
    "ACTIVE_BOOKING_STATUSES",
    "BookingRequest",
    "BookingMessage",
    "SenderType",
    "ServiceAgreement",
    "DeliverableStatus",
    "MilestoneStatus",
    "SignatureType",
]
