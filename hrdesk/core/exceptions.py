"""
Domain errors raised by the services.

Each error carries a ``kind`` (what went wrong, independent of transport)
and the HTTP status the API layer answers with. ``code`` is the class name
and is returned to clients so they can branch on a specific guard.
"""

from fastapi import status


class HRDeskError(Exception):
    kind = "invalid_operation"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid operation"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__


class NotFoundError(HRDeskError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InvalidStateError(HRDeskError):
    kind = "invalid_state"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidInputError(HRDeskError):
    kind = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(HRDeskError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting update, please retry"


# --- attendance ---


class AlreadyClockedIn(InvalidStateError):
    default_message = "Already clocked in today"


class NoClockInFound(InvalidStateError):
    default_message = "No clock-in record found for today"


class AlreadyClockedOut(InvalidStateError):
    default_message = "Already clocked out today"


class NotClockedIn(InvalidStateError):
    default_message = "Must clock in before taking a break"


class BreakAlreadyStarted(InvalidStateError):
    default_message = "Break already started"


class NoActiveBreak(InvalidStateError):
    default_message = "No active break found"


class BreakAlreadyEnded(InvalidStateError):
    default_message = "Break already ended"


class NoAttendanceRecord(InvalidStateError):
    default_message = "No attendance record found for today"


class AttendanceConflict(ConflictError):
    default_message = "Attendance record was modified concurrently, please retry"


# --- leave ---


class LeaveRequestNotFound(NotFoundError):
    default_message = "Leave request not found"


class AlreadyProcessed(InvalidStateError):
    default_message = "Leave request already processed"


class InvalidLeaveType(InvalidInputError):
    default_message = "Invalid leave type"


class InvalidDateRange(InvalidInputError):
    default_message = "End date must not be before start date"


class QuotaExceeded(InvalidInputError):
    default_message = "Leave quota exceeded for the year"


class InvalidActionToken(InvalidInputError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid or expired action link"


# --- employees / positions / users ---


class EmployeeNotFound(NotFoundError):
    default_message = "Employee not found"


class PositionNotFound(NotFoundError):
    default_message = "Position not found"


class DuplicateEmail(ConflictError):
    default_message = "Email is already in use"


class DuplicatePositionName(ConflictError):
    default_message = "Position name is already in use"


class PositionInUse(InvalidStateError):
    default_message = "Position has employees assigned"


# --- employee files ---


class EmployeeFileNotFound(NotFoundError):
    default_message = "File not found"


class StoredFileMissing(NotFoundError):
    default_message = "File content is missing from storage"


class EmptyFile(InvalidInputError):
    default_message = "File is required"


class UnsupportedFileType(InvalidInputError):
    default_message = "File type is not allowed"


class FileTooLarge(InvalidInputError):
    default_message = "File size exceeds the upload limit"
