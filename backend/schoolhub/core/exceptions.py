class AppError(Exception):
    """Base class for all application exceptions."""

    code = "app_error"

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""

    code = "not_found"

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class TeacherNotFoundError(AppError):
    """Raised when a referenced teacher is missing or is not a staff member."""

    code = "teacher_not_found"

    def __init__(self, teacher_id: str):
        super().__init__(
            f"Teacher {teacher_id} not found among staff members",
            status_code=404,
            details={"teacher_id": teacher_id},
        )


class InvalidClassIdError(AppError):
    code = "invalid_class_id"

    def __init__(self, class_id: str, reason: str = "Expected format '<class>-<section>', e.g. '5-A'"):
        super().__init__(f"Invalid class id {class_id!r}: {reason}", status_code=422, details={"class_id": class_id})


class InvalidTimeSlotError(AppError):
    code = "invalid_time_slot"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)


class SchedulingConflictError(AppError):
    """Raised when a write would break a teacher load or slot invariant."""

    code = "scheduling_conflict"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class DailyLimitExceededError(SchedulingConflictError):
    code = "daily_limit_exceeded"


class ConsecutivePeriodConflictError(SchedulingConflictError):
    code = "consecutive_period_conflict"


class TeacherDoubleBookedError(SchedulingConflictError):
    code = "teacher_double_booked"


class TeacherCrossClassConflictError(SchedulingConflictError):
    code = "teacher_cross_class_conflict"


class DuplicateSlotError(SchedulingConflictError):
    code = "duplicate_slot"
