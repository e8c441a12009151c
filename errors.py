"""
Error taxonomy for the portal.

Services raise these; main.py turns them into JSON responses shaped like
schemas.ErrorResponse.
"""


class PortalError(Exception):
    status_code = 400
    error_code = "PortalError"

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__ or self.error_code
        super().__init__(self.message)


# Base categories
class ValidationError(PortalError):
    """Invalid input"""
    status_code = 400
    error_code = "ValidationError"


class NotFoundError(PortalError):
    """Not found"""
    status_code = 404
    error_code = "NotFoundError"


class ConflictError(PortalError):
    """Conflicting state"""
    # Existing clients expect 400 for conflicting check-in/out calls
    status_code = 400
    error_code = "ConflictError"


class ForbiddenError(PortalError):
    """Operation not permitted"""
    status_code = 403
    error_code = "ForbiddenError"


class UnauthorizedError(PortalError):
    """Could not validate credentials"""
    status_code = 401
    error_code = "UnauthorizedError"


# Attendance
class DuplicateCheckIn(ConflictError):
    """Already checked in"""
    error_code = "DuplicateCheckIn"


class NoCheckInFound(ConflictError):
    """No check-in found"""
    error_code = "NoCheckInFound"


class AlreadyCheckedOut(ConflictError):
    """Already checked out"""
    error_code = "AlreadyCheckedOut"


class AttendanceNotFound(NotFoundError):
    """Attendance record not found"""
    error_code = "AttendanceNotFound"


# Leave
class InvalidDateRange(ValidationError):
    """end_date must be >= start_date"""
    error_code = "InvalidDateRange"


class LeaveNotFound(NotFoundError):
    """Leave request not found"""
    error_code = "LeaveNotFound"


class LeaveAlreadyDecided(ConflictError):
    """Leave request is not pending"""
    error_code = "LeaveAlreadyDecided"


# Employees
class EmployeeNotFound(NotFoundError):
    """Employee not found"""
    # Raised for a referenced employee inside another request body
    status_code = 400
    error_code = "EmployeeNotFound"
