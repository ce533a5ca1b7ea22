"""
Domain Errors

Expected, user-facing failure kinds of the booking core. Every error carries
a machine-readable code, the HTTP status the API answers with, and a message
that can be shown to the caller as is.
"""


class DomainError(Exception):
    """Base class for expected booking-core failures"""

    code = 'domain_error'
    status_code = 400
    default_message = 'The request could not be completed.'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'code': self.code, 'detail': self.message}


class NotFound(DomainError):
    """Package or booking is absent or inactive"""
    code = 'not_found'
    status_code = 404
    default_message = 'Not found.'


class CapacityExceeded(DomainError):
    """No slot left on the requested date"""
    code = 'capacity_exceeded'
    status_code = 409
    default_message = 'No available slots for this date'


class NothingToRelease(DomainError):
    """Release requested on a date with no booked slot"""
    code = 'nothing_to_release'
    status_code = 409
    default_message = 'There is no booked slot to release for this date'


class DateBlackedOut(DomainError):
    """Date manually disabled by the planner"""
    code = 'blackout'
    status_code = 409
    default_message = 'This date is not available'


class PreparationConflict(DomainError):
    """Date falls inside the preparation window of a confirmed booking"""
    code = 'preparation_conflict'
    status_code = 409
    default_message = 'This date falls within the preparation period of another booking'


class DuplicateBooking(DomainError):
    """Client already holds a non-cancelled booking on that date"""
    code = 'duplicate_booking'
    status_code = 409
    default_message = 'You already have a booking on this date'


class DuplicateBlackout(DomainError):
    code = 'duplicate_blackout'
    status_code = 409
    default_message = 'This date is already marked as unavailable'


class InvalidTransition(DomainError):
    """Status change not permitted from the current state"""
    code = 'invalid_transition'
    status_code = 409
    default_message = 'This status change is not allowed'


class InvalidDate(DomainError):
    """Date not strictly in the future, malformed, or a bad time of day"""
    code = 'invalid_date'
    status_code = 400
    default_message = 'Invalid date'


class InvalidDetails(DomainError):
    """Booking details missing or malformed, such as a blank location"""
    code = 'invalid_details'
    status_code = 400
    default_message = 'Invalid booking details'
