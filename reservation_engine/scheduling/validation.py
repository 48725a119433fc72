"""
Submission checks for the booking form.

Each check returns an inline message for its field, or None when the
field is fine. ``validate_submission`` runs them all so every problem is
reported at once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from reservation_engine.errors import ValidationError
from reservation_engine.utils import is_valid_mobile

if TYPE_CHECKING:
    from reservation_engine.scheduling.form_state import ReservationFormState

logger = logging.getLogger(__name__)

MISSING_SLOT_MESSAGE = "Please select an available time."
MISSING_SERVICE_MESSAGE = "At least one service must be selected."
MISSING_NAME_MESSAGE = "Customer first name is required."
MISSING_PHONE_MESSAGE = "Phone number is required for non-walk-in bookings."
INVALID_PHONE_MESSAGE = (
    "Phone number must be a valid 10-digit mobile number starting with 04."
)


def _check_slot(state: ReservationFormState) -> Optional[str]:
    return None if state.selected_slot is not None else MISSING_SLOT_MESSAGE


def _check_name(state: ReservationFormState) -> Optional[str]:
    return None if state.customer.first_name.strip() else MISSING_NAME_MESSAGE


def _check_phone(state: ReservationFormState) -> Optional[str]:
    if state.walk_in_booking:
        return None
    phone = state.customer.phone.strip()
    if not phone:
        return MISSING_PHONE_MESSAGE
    if not is_valid_mobile(phone):
        return INVALID_PHONE_MESSAGE
    return None


def validate_submission(state: ReservationFormState) -> None:
    """
    Check that the form can be submitted.

    Raises:
        ValidationError: With one message per offending field. Guest
            service problems are keyed ``guests.<index>.services``.
    """
    errors: dict[str, str] = {}

    for field_name, check in (
        ("selected_slot", _check_slot),
        ("customer.first_name", _check_name),
        ("customer.phone", _check_phone),
    ):
        message = check(state)
        if message:
            errors[field_name] = message

    for index, guest in enumerate(state.guests):
        if not guest.services:
            errors[f"guests.{index}.services"] = MISSING_SERVICE_MESSAGE

    if errors:
        logger.debug("Submission rejected: %s", sorted(errors))
        raise ValidationError(errors)
