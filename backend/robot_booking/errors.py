# backend/robot_booking/errors.py
# Domain exceptions; main renders them as {"detail", "reason"} with their status code.

from enum import Enum
from typing import Optional


class ServiceError(Exception):
    status_code = 400
    reason = "Error"
    default_message = "Begäran kunde inte utföras"

    def __init__(self, message: Optional[str] = None, reason: Optional[str] = None):
        self.message = message or self.default_message
        if reason is not None:
            self.reason = reason
        super().__init__(self.message)


class ValidationFailed(ServiceError):
    status_code = 400
    reason = "ValidationFailed"


class Unauthorized(ServiceError):
    status_code = 401
    reason = "Unauthorized"
    default_message = "Invalid token"


class Forbidden(ServiceError):
    status_code = 403
    reason = "Forbidden"
    default_message = "Not allowed"


class NotFound(ServiceError):
    status_code = 404
    reason = "NotFound"
    default_message = "Not found"


class PayloadTooLarge(ServiceError):
    status_code = 413
    reason = "PayloadTooLarge"
    default_message = "Filen är för stor"


class Rejection(str, Enum):
    INVALID_DAY = "InvalidDay"
    ROBOT_NOT_FOUND = "RobotNotFound"
    ROBOT_UNAVAILABLE = "RobotUnavailable"
    SLOT_TAKEN = "SlotTaken"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    HAS_ACTIVE_BOOKINGS = "HasActiveBookings"


REJECTION_STATUS = {
    Rejection.INVALID_DAY: 400,
    Rejection.ROBOT_NOT_FOUND: 404,
    Rejection.ROBOT_UNAVAILABLE: 400,
    Rejection.SLOT_TAKEN: 400,
    Rejection.FORBIDDEN: 403,
    Rejection.NOT_FOUND: 404,
    Rejection.HAS_ACTIVE_BOOKINGS: 400,
}


class BookingRejected(ServiceError):
    """A booking-ledger rule refused the request; ``rejection`` says which one."""

    def __init__(self, rejection: Rejection, message: str):
        self.rejection = rejection
        self.status_code = REJECTION_STATUS[rejection]
        super().__init__(message, reason=rejection.value)
