from .errors import ReservationError
from .service import (SlotReservationService, BookingRequest, BookingResult, CustomerInfo, ServiceLine,
                      TimeSlot, SlotDetail, WARNING_LINE_ITEMS_NOT_SAVED)
