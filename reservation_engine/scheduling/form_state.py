"""
Booking form state as an immutable value with pure transition functions.

The UI layer owns dispatch and rendering. Each ``on_*`` function takes the
current ``ReservationFormState`` and returns the next one; none of them
touch the network. The form lifecycle follows an explicit transition
table, in the same spirit as a finite state machine:

    EDITING -> SUBMITTING -> SUBMITTED_SUCCESS
                          -> SUBMITTED_FAILURE -> EDITING (any edit)
    EDITING | SUBMITTED_FAILURE -> CANCELLED

Usage:
    state = new_form(date(2026, 10, 20), max_group_size=4)
    state = on_guest_count_change(state, 2)
    state = on_availability_loaded(state, state.pending_fetch, slots)
    state = on_slot_select(state, "15:00")
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import NamedTuple, Optional

from reservation_engine.errors import InvalidTransitionError, ValidationError
from reservation_engine.scheduling.reservation_utils import selection_for_reservation
from reservation_engine.schemas.availability_schema import StaffSelection, TimeSlot
from reservation_engine.schemas.reservation_schema import (
    Customer,
    Guest,
    GuestService,
    Reservation,
)

logger = logging.getLogger(__name__)

GROUP_STAFF_MESSAGE = "Group bookings can only be made with any professional."


class FormPhase(str, Enum):
    """Lifecycle phase of one booking form session."""
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED_SUCCESS = "submitted_success"
    SUBMITTED_FAILURE = "submitted_failure"
    CANCELLED = "cancelled"


class FormTrigger(str, Enum):
    """Events that move the form between phases."""
    EDIT = "edit"
    SUBMIT = "submit"
    SUBMIT_SUCCEEDED = "submit_succeeded"
    SUBMIT_FAILED = "submit_failed"
    CANCEL = "cancel"


TRANSITIONS: dict[tuple[FormPhase, FormTrigger], FormPhase] = {
    (FormPhase.EDITING, FormTrigger.EDIT): FormPhase.EDITING,
    (FormPhase.EDITING, FormTrigger.SUBMIT): FormPhase.SUBMITTING,
    (FormPhase.EDITING, FormTrigger.CANCEL): FormPhase.CANCELLED,
    (FormPhase.SUBMITTING, FormTrigger.SUBMIT_SUCCEEDED): FormPhase.SUBMITTED_SUCCESS,
    (FormPhase.SUBMITTING, FormTrigger.SUBMIT_FAILED): FormPhase.SUBMITTED_FAILURE,
    (FormPhase.SUBMITTED_FAILURE, FormTrigger.EDIT): FormPhase.EDITING,
    (FormPhase.SUBMITTED_FAILURE, FormTrigger.SUBMIT): FormPhase.SUBMITTING,
    (FormPhase.SUBMITTED_FAILURE, FormTrigger.CANCEL): FormPhase.CANCELLED,
}

TERMINAL_PHASES = frozenset({FormPhase.SUBMITTED_SUCCESS, FormPhase.CANCELLED})


class FetchKey(NamedTuple):
    """The inputs an availability fetch was issued for."""
    date: date
    staff_id: int
    headcount: int


@dataclass(frozen=True)
class ReservationFormState:
    """Everything the booking form holds between user events."""

    selected_date: date
    staff_selection: StaffSelection = field(default_factory=StaffSelection.any)
    guests: tuple[Guest, ...] = ()
    selected_slot: Optional[TimeSlot] = None
    available_slots: tuple[TimeSlot, ...] = ()
    customer: Customer = field(default_factory=Customer)
    note: str = ""
    walk_in_booking: bool = True
    phase: FormPhase = FormPhase.EDITING
    pending_fetch: Optional[FetchKey] = None
    loading: bool = False
    editing: Optional[Reservation] = None
    max_group_size: int = 1
    field_errors: Mapping[str, str] = field(default_factory=dict)
    result_message: Optional[str] = None

    @property
    def guest_count(self) -> int:
        return len(self.guests)

    @property
    def is_group_booking(self) -> bool:
        return len(self.guests) > 1

    @property
    def is_edit(self) -> bool:
        return self.editing is not None

    @property
    def is_closed(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def fetch_key(self) -> FetchKey:
        return FetchKey(self.selected_date, self.staff_selection.staff_id, len(self.guests))


def _advance(state: ReservationFormState, trigger: FormTrigger) -> FormPhase:
    try:
        new_phase = TRANSITIONS[(state.phase, trigger)]
    except KeyError:
        valid = [t.value for (p, t) in TRANSITIONS if p == state.phase]
        raise InvalidTransitionError(
            f"No valid transition from '{state.phase.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        ) from None
    if new_phase != state.phase:
        logger.debug(
            "Form phase: %s -> %s (trigger: %s)",
            state.phase.value, new_phase.value, trigger.value,
        )
    return new_phase


def _edit(state: ReservationFormState, **changes) -> ReservationFormState:
    """Apply a user edit; an edit after a failed submit reopens the form."""
    phase = _advance(state, FormTrigger.EDIT)
    return replace(state, phase=phase, field_errors={}, result_message=None, **changes)


def _refetch(state: ReservationFormState, **changes) -> ReservationFormState:
    """Apply an edit that invalidates the slot and re-keys availability."""
    edited = _edit(state, selected_slot=None, available_slots=(), **changes)
    return replace(edited, pending_fetch=edited.fetch_key(), loading=True)


def _new_guest(number: int) -> Guest:
    return Guest(display_name=f"Guest {number}")


# ---------------------------------------------------------------------- #
# Opening the form
# ---------------------------------------------------------------------- #

def new_form(selected_date: date, max_group_size: int = 1) -> ReservationFormState:
    """Blank create form for one guest with "any professional"."""
    state = ReservationFormState(
        selected_date=selected_date,
        guests=(_new_guest(1),),
        max_group_size=max_group_size,
    )
    return replace(state, pending_fetch=state.fetch_key(), loading=True)


def form_for_edit(reservation: Reservation, max_group_size: int = 1) -> ReservationFormState:
    """Form pre-filled from an existing reservation, for rescheduling."""
    state = ReservationFormState(
        selected_date=reservation.booking_date,
        staff_selection=selection_for_reservation(reservation),
        guests=tuple(g.model_copy(deep=True) for g in reservation.guests),
        customer=reservation.customer.model_copy(),
        note=reservation.note,
        walk_in_booking=reservation.walk_in_booking,
        editing=reservation,
        max_group_size=max(max_group_size, len(reservation.guests)),
    )
    return replace(state, pending_fetch=state.fetch_key(), loading=True)


# ---------------------------------------------------------------------- #
# Inputs that change availability
# ---------------------------------------------------------------------- #

def on_date_change(state: ReservationFormState, new_date: date) -> ReservationFormState:
    return _refetch(state, selected_date=new_date)


def on_staff_mode_change(
    state: ReservationFormState, selection: StaffSelection
) -> ReservationFormState:
    """Switch between a specific staff member and any professional.

    Raises:
        ValidationError: A specific staff member was chosen for a group booking.
    """
    if state.is_group_booking and not selection.is_any:
        raise ValidationError({"staff_selection": GROUP_STAFF_MESSAGE})
    return _refetch(state, staff_selection=selection)


def on_guest_count_change(state: ReservationFormState, count: int) -> ReservationFormState:
    """Grow or shrink the guest list; staff selection resets to any professional.

    Raises:
        ValidationError: ``count`` is outside 1..max_group_size.
    """
    if not 1 <= count <= state.max_group_size:
        raise ValidationError({
            "guests": f"A booking can have between 1 and {state.max_group_size} guests."
        })
    guests = list(state.guests[:count])
    while len(guests) < count:
        guests.append(_new_guest(len(guests) + 1))
    return _refetch(state, guests=tuple(guests), staff_selection=StaffSelection.any())


# ---------------------------------------------------------------------- #
# Availability responses
# ---------------------------------------------------------------------- #

def on_availability_loaded(
    state: ReservationFormState, key: FetchKey, slots: list[TimeSlot]
) -> ReservationFormState:
    """Apply a fetched slot list, unless it answers outdated inputs."""
    if state.is_closed or key != state.pending_fetch:
        logger.debug("Discarding stale availability for %s", key)
        return state
    return replace(state, available_slots=tuple(slots), loading=False)


def on_availability_failed(state: ReservationFormState, key: FetchKey) -> ReservationFormState:
    if state.is_closed or key != state.pending_fetch:
        return state
    return replace(state, available_slots=(), loading=False)


def on_slot_select(state: ReservationFormState, time: str) -> ReservationFormState:
    """Select one of the currently offered slots by its time label.

    Raises:
        ValidationError: ``time`` is not among the available slots.
    """
    for slot in state.available_slots:
        if slot.time == time:
            return _edit(state, selected_slot=slot)
    raise ValidationError({"selected_slot": f"{time} is not an available time."})


# ---------------------------------------------------------------------- #
# Plain field edits
# ---------------------------------------------------------------------- #

def on_guest_services_change(
    state: ReservationFormState, index: int, services: list[GuestService]
) -> ReservationFormState:
    if not 0 <= index < len(state.guests):
        raise IndexError(f"No guest at position {index}")
    guests = list(state.guests)
    guests[index] = guests[index].model_copy(update={"services": list(services)})
    return _edit(state, guests=tuple(guests))


def on_customer_change(state: ReservationFormState, customer: Customer) -> ReservationFormState:
    # Editing keeps the stored customer's id.
    if state.editing is not None and customer.id is None:
        customer = customer.model_copy(update={"id": state.customer.id})
    return _edit(state, customer=customer)


def on_note_change(state: ReservationFormState, note: str) -> ReservationFormState:
    return _edit(state, note=note)


def on_walk_in_change(state: ReservationFormState, walk_in: bool) -> ReservationFormState:
    return _edit(state, walk_in_booking=walk_in)


# ---------------------------------------------------------------------- #
# Lifecycle
# ---------------------------------------------------------------------- #

def on_submit(state: ReservationFormState) -> ReservationFormState:
    return replace(
        state, phase=_advance(state, FormTrigger.SUBMIT), field_errors={}, result_message=None
    )


def on_submit_succeeded(state: ReservationFormState, message: str) -> ReservationFormState:
    return replace(
        state, phase=_advance(state, FormTrigger.SUBMIT_SUCCEEDED), result_message=message
    )


def on_submit_failed(
    state: ReservationFormState,
    message: str,
    field_errors: Optional[Mapping[str, str]] = None,
) -> ReservationFormState:
    return replace(
        state,
        phase=_advance(state, FormTrigger.SUBMIT_FAILED),
        field_errors=dict(field_errors or {}),
        result_message=message,
    )


def on_cancel(state: ReservationFormState) -> ReservationFormState:
    return replace(state, phase=_advance(state, FormTrigger.CANCEL), loading=False)
