"""
Error taxonomy for the booking workflow.

Each error carries a stable code, a short title and a message fit for
showing to a customer or administrator, plus the HTTP status the API
answers with.
"""

class ReservationError(Exception):
    code = 'INTERNAL_ERROR'
    title = 'Unexpected error'
    message = 'Something went wrong. Please try again.'
    status_code = 500

    def __init__(self, message=None, details=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.details = details

    def to_dict(self):
        error = {
            'code': self.code,
            'title': self.title,
            'message': self.message
        }
        if self.details:
            error['details'] = self.details
        return {'error': error}


class SlotUnavailable(ReservationError):
    code = 'SLOT_UNAVAILABLE'
    title = 'Time unavailable'
    message = 'This time is not available. Please choose another time.'
    status_code = 409


class DuplicateBooking(ReservationError):
    code = 'DUPLICATE_BOOKING'
    title = 'Time already taken'
    message = 'This time was just booked by someone else. Please choose another.'
    status_code = 409


class CustomerError(ReservationError):
    code = 'CUSTOMER_ERROR'
    title = 'Customer details error'
    message = 'We could not save your details. Please check them and try again.'
    status_code = 400


class CustomerSearchError(ReservationError):
    code = 'CUSTOMER_SEARCH_ERROR'
    title = 'Customer lookup failed'
    message = 'We could not look up your details right now. Please try again.'
    status_code = 503


class BookingError(ReservationError):
    code = 'BOOKING_ERROR'
    title = 'Booking failed'
    message = 'We could not create your booking. Please try again.'
    status_code = 500


class SlotError(ReservationError):
    code = 'SLOT_ERROR'
    title = 'Schedule unavailable'
    message = 'We could not check the schedule right now. Please try again.'
    status_code = 503


class InternalError(ReservationError):
    pass


class DuplicateReview(ReservationError):
    code = 'DUPLICATE_REVIEW'
    title = 'Duplicate review'
    message = 'You have already reviewed this clinic. Each person can review only once.'
    status_code = 409


class ValidationFailed(ReservationError):
    code = 'VALIDATION_ERROR'
    title = 'Invalid data'
    message = 'Some fields are missing or invalid.'
    status_code = 400


class NotFound(ReservationError):
    code = 'NOT_FOUND'
    title = 'Not found'
    message = 'The requested record does not exist.'
    status_code = 404


class ServiceInUse(ReservationError):
    code = 'SERVICE_IN_USE'
    title = 'Service in use'
    message = 'This service appears on bookings. Deactivate it instead of deleting it.'
    status_code = 409
