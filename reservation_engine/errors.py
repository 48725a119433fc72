"""Error taxonomy for the reservation engine.

Every error here ends the current submission attempt only; the booking
form stays editable afterwards.
"""

from typing import Optional


class ReservationEngineError(Exception):
    """Base class for all engine errors."""


class ValidationError(ReservationEngineError):
    """Raised when a submission is missing data or carries malformed fields.

    ``field_errors`` maps a form field name to the message shown inline
    next to it.
    """

    def __init__(self, field_errors: dict[str, str]) -> None:
        self.field_errors = dict(field_errors)
        super().__init__("; ".join(self.field_errors.values()) or "Invalid submission")


class InsufficientStaffError(ReservationEngineError):
    """Raised when a group booking needs more free staff than the slot has."""

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            f"Not enough staff available: {required} needed, {available} free"
        )

    @property
    def shortfall(self) -> int:
        return self.required - self.available


class PersistenceError(ReservationEngineError):
    """Raised when the remote API rejects or fails a create/update call."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AvailabilityUnavailableError(ReservationEngineError):
    """Raised when the availability feed cannot be fetched."""


class InvalidTransitionError(ReservationEngineError):
    """Raised when a form lifecycle move is not valid from the current phase."""
