"""
Errors raised by the scheduling core for structurally invalid input.
"""


class ScheduleValidationError(ValueError):
    """Input the schedulers cannot work with (no subjects, bad range, bad times)."""


class InvalidTimeError(ScheduleValidationError):
    """A time string that is not a valid 24-hour HH:MM value."""


class InvalidStatusTransition(ValueError):
    """A block status change outside the allowed state machine."""
