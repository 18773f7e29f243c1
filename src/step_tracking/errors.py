"""Error taxonomy for step tracking."""


class StepTrackingError(Exception):
    """Base class for step tracking errors."""


class CapabilityUnavailable(StepTrackingError):
    """The host platform exposes no motion-sensing interface."""

    def __init__(self, message: str = "Device motion not supported on this device"):
        super().__init__(message)


class PermissionDenied(StepTrackingError):
    """The user or platform declined access to the motion sensor."""

    def __init__(self, message: str = "Motion sensor permission denied"):
        super().__init__(message)


class PersistenceWriteFailure(StepTrackingError):
    """A flush of the step count to the activity store failed."""

    def __init__(self, user_id: str, day, steps: int, cause: BaseException):
        super().__init__(
            f"Failed to persist {steps} steps for user {user_id} on {day}: {cause}"
        )
        self.user_id = user_id
        self.day = day
        self.steps = steps
        self.cause = cause
