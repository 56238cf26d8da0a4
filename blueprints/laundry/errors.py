from __future__ import annotations


class LaundryError(Exception):
    """Базовая ошибка прачечной: код для клиента + HTTP-статус."""
    code = "laundry_error"
    http_status = 400
    message = "Laundry request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)

    @property
    def detail(self) -> str:
        return str(self)


class UnauthenticatedError(LaundryError):
    code = "unauthorized"
    http_status = 401
    message = "Unauthorized"


class NotFoundError(LaundryError):
    code = "student_not_found"
    http_status = 404
    message = "Student record not found"


class SlotNotFoundError(NotFoundError):
    code = "slot_not_found"
    message = "Slot not found"


class DuplicateBookingError(LaundryError):
    code = "duplicate_booking"
    http_status = 400
    message = "You already have a booking for this date"


class SlotUnavailableError(LaundryError):
    code = "slot_unavailable"
    http_status = 409
    message = "Slot is not available"


class NotAuthorizedError(LaundryError):
    code = "not_authorized"
    http_status = 403
    message = "Not authorized to update this slot"


class InternalError(LaundryError):
    code = "internal_error"
    http_status = 500
    message = "Internal server error"
