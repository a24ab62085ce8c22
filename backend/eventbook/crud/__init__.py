from . import crud_marketplace
from . import crud_booking_request
from . import crud_booking_message
from . import crud_service_agreement
