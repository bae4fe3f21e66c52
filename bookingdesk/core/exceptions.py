"""Exception hierarchy shared by services and the HTTP layer"""


class BookingDeskError(Exception):
    """Base class for application errors"""


class AvailabilityEvaluationError(BookingDeskError):
    """
    Availability could not be determined.

    Raised when a repository read fails or a stored rule is unusable. Callers
    must never read this as either an available or an unavailable verdict.
    """


class MalformedRuleError(AvailabilityEvaluationError):
    """A stored scheduling rule has an invalid shape (bad HH:MM, weekday out of range, ...)"""

    def __init__(self, rule, message: str):
        self.rule = rule
        super().__init__(f"{message} in {rule!r}")


class SlotUnavailableError(BookingDeskError):
    """The requested appointment time cannot be booked"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class NotFoundError(BookingDeskError):
    """Requested record does not exist"""
