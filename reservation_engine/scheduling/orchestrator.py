"""
Booking form orchestrator: drives one create or reschedule session.

Holds the current ``ReservationFormState``, applies the pure transitions
from ``form_state`` and performs the only two kinds of I/O the engine
does: availability fetches and the final create/update call.

Availability fetches are tagged with the inputs they were issued for.
When a response arrives after the date, staff or guest count changed
again (or after the form closed) it is dropped.

Usage:
    orchestrator = ReservationFormOrchestrator(api, api, api)
    await orchestrator.load_staff()
    await orchestrator.open_create(date(2026, 10, 20))
    orchestrator.select_slot("15:00")
    result = await orchestrator.submit()
"""

import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from reservation_engine.clients.ports import (
    AvailabilityService,
    ReservationStore,
    StaffDirectory,
)
from reservation_engine.config import settings
from reservation_engine.errors import (
    AvailabilityUnavailableError,
    InsufficientStaffError,
    PersistenceError,
    ValidationError,
)
from reservation_engine.logging_context import (
    get_form_logger,
    new_form_session_id,
    set_form_session_id,
)
from reservation_engine.scheduling import form_state as fs
from reservation_engine.scheduling.availability_filter import filter_slots
from reservation_engine.scheduling.form_state import ReservationFormState
from reservation_engine.scheduling.staff_assignment import StaffAssignmentResolver
from reservation_engine.scheduling.validation import validate_submission
from reservation_engine.schemas.availability_schema import StaffSelection
from reservation_engine.schemas.reservation_schema import (
    ANY_PROFESSIONAL,
    Customer,
    Guest,
    GuestService,
    Reservation,
    ReservationStatus,
    Staff,
)
from reservation_engine.utils import normalize_phone, parse_slot_time

logger = get_form_logger(__name__)

CREATED_MESSAGE = "Booking created successfully!"
UPDATED_MESSAGE = "Booking updated successfully!"
VALIDATION_FAILED_MESSAGE = (
    "Please fill all required fields correctly and ensure each guest has at least one service."
)
NOT_ENOUGH_STAFF_MESSAGE = (
    "There are not enough staff members available for the selected time."
)
PERSISTENCE_FAILED_MESSAGE = (
    "Failed to save reservation. Please try again or contact admin for support."
)


@dataclass
class SubmissionResult:
    """Outcome of one submit attempt, ready for the result dialog."""
    success: bool
    message: str
    reservation: Optional[Reservation] = None
    field_errors: dict[str, str] = field(default_factory=dict)
    shortfall: Optional[int] = None
    error_kind: Optional[str] = None  # "validation" | "insufficient_staff" | "persistence"


def store_clock() -> datetime:
    """Current wall-clock time in the store's timezone, as a naive datetime."""
    return datetime.now(ZoneInfo(settings.store.timezone)).replace(tzinfo=None)


class ReservationFormOrchestrator:
    """
    Create/edit lifecycle for the booking form.

    The UI calls one method per user event and re-renders from ``state``.
    Failures never discard what the user entered; the form stays open
    with the error attached so it can be corrected and resubmitted.
    """

    def __init__(
        self,
        availability: AvailabilityService,
        staff_directory: StaffDirectory,
        reservations: ReservationStore,
        resolver: Optional[StaffAssignmentResolver] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_group_size: Optional[int] = None,
        on_saved: Optional[Callable[[Reservation], None]] = None,
    ) -> None:
        self._availability = availability
        self._staff_directory = staff_directory
        self._reservations = reservations
        self._resolver = resolver or StaffAssignmentResolver(
            rng=random.Random(settings.assignment.random_seed)
        )
        self._clock = clock or store_clock
        self._max_group_size = max_group_size or settings.store.max_group_size
        self._on_saved = on_saved
        self._staff: list[Staff] = [ANY_PROFESSIONAL]
        self._state: Optional[ReservationFormState] = None

    @property
    def state(self) -> ReservationFormState:
        if self._state is None:
            raise RuntimeError("No booking form is open")
        return self._state

    # ------------------------------------------------------------------ #
    # Staff directory
    # ------------------------------------------------------------------ #

    async def load_staff(self) -> list[Staff]:
        """Fetch active staff and put "any professional" first.

        When the directory cannot be reached only "any professional" is
        offered, so bookings can still be made.
        """
        try:
            staff = await self._staff_directory.list_staff(active_only=True)
        except PersistenceError as e:
            logger.error("Staff directory unavailable: %s", e)
            self._resolver.update_staff_lookup([])
            self._staff = [ANY_PROFESSIONAL]
            return list(self._staff)
        self._resolver.update_staff_lookup(staff)
        self._staff = [ANY_PROFESSIONAL, *staff]
        logger.debug("Loaded %d staff members", len(staff))
        return list(self._staff)

    def staff_options(self) -> list[Staff]:
        """Staff choices for the form; group bookings only offer anyone."""
        if self._state is not None and self._state.is_group_booking:
            return [ANY_PROFESSIONAL]
        return list(self._staff)

    # ------------------------------------------------------------------ #
    # Opening and closing
    # ------------------------------------------------------------------ #

    async def open_create(self, selected_date: date) -> ReservationFormState:
        set_form_session_id(new_form_session_id())
        self._state = fs.new_form(selected_date, self._max_group_size)
        logger.info("Create form opened for %s", selected_date.isoformat())
        return await self.refresh_availability()

    async def open_edit(self, reservation: Reservation) -> ReservationFormState:
        set_form_session_id(new_form_session_id())
        self._state = fs.form_for_edit(reservation, self._max_group_size)
        logger.info("Edit form opened for reservation %s", reservation.id)
        return await self.refresh_availability()

    def cancel(self) -> ReservationFormState:
        self._state = fs.on_cancel(self.state)
        logger.info("Booking form cancelled")
        return self._state

    # ------------------------------------------------------------------ #
    # Inputs
    # ------------------------------------------------------------------ #

    async def change_date(self, new_date: date) -> ReservationFormState:
        self._state = fs.on_date_change(self.state, new_date)
        return await self.refresh_availability()

    async def change_staff_mode(self, selection: StaffSelection) -> ReservationFormState:
        self._state = fs.on_staff_mode_change(self.state, selection)
        return await self.refresh_availability()

    async def change_guest_count(self, count: int) -> ReservationFormState:
        self._state = fs.on_guest_count_change(self.state, count)
        return await self.refresh_availability()

    def select_slot(self, slot_time: str) -> ReservationFormState:
        self._state = fs.on_slot_select(self.state, slot_time)
        return self._state

    def set_guest_services(self, index: int, services: list[GuestService]) -> ReservationFormState:
        self._state = fs.on_guest_services_change(self.state, index, services)
        return self._state

    def set_customer(self, customer: Customer) -> ReservationFormState:
        self._state = fs.on_customer_change(self.state, customer)
        return self._state

    def set_note(self, note: str) -> ReservationFormState:
        self._state = fs.on_note_change(self.state, note)
        return self._state

    def set_walk_in(self, walk_in: bool) -> ReservationFormState:
        self._state = fs.on_walk_in_change(self.state, walk_in)
        return self._state

    # ------------------------------------------------------------------ #
    # Availability
    # ------------------------------------------------------------------ #

    async def refresh_availability(self) -> ReservationFormState:
        """Fetch slots for the state's pending inputs; late answers are dropped."""
        key = self.state.pending_fetch
        if key is None:
            return self.state

        try:
            raw = await self._availability.fetch_availability(key.date, key.staff_id)
        except AvailabilityUnavailableError as e:
            logger.warning("Availability unavailable for %s: %s", key.date.isoformat(), e)
            self._state = fs.on_availability_failed(self.state, key)
            return self._state

        slots = filter_slots(
            raw, key.date, self._clock(),
            required_headcount=key.headcount, staff_id=key.staff_id,
        )
        self._state = fs.on_availability_loaded(self.state, key, slots)
        return self._state

    # ------------------------------------------------------------------ #
    # Submission
    # ------------------------------------------------------------------ #

    async def submit(self) -> SubmissionResult:
        """Validate, assign staff, persist. Never raises for user-correctable problems."""
        self._state = fs.on_submit(self.state)
        state = self._state

        try:
            validate_submission(state)
            previous = list(state.editing.guests) if state.editing is not None else None
            guests = self._resolver.resolve(
                state.selected_slot, state.staff_selection, list(state.guests), previous,
            )
            reservation = self._build_reservation(state, guests)
            if state.editing is not None:
                saved = await self._reservations.update(reservation)
            else:
                saved = await self._reservations.create(reservation)
        except ValidationError as e:
            return self._fail(
                VALIDATION_FAILED_MESSAGE, "validation", field_errors=e.field_errors
            )
        except InsufficientStaffError as e:
            logger.info("Not enough staff at %s: short by %d", state.selected_slot.time, e.shortfall)
            return self._fail(NOT_ENOUGH_STAFF_MESSAGE, "insufficient_staff", shortfall=e.shortfall)
        except PersistenceError as e:
            logger.error("Reservation save failed: %s", e)
            return self._fail(PERSISTENCE_FAILED_MESSAGE, "persistence")

        message = UPDATED_MESSAGE if state.editing is not None else CREATED_MESSAGE
        self._state = fs.on_submit_succeeded(self.state, message)
        logger.info("Reservation %s saved for %s", saved.id, saved.booking_time.isoformat())
        if self._on_saved is not None:
            self._on_saved(saved)
        return SubmissionResult(success=True, message=message, reservation=saved)

    def _fail(
        self,
        message: str,
        error_kind: str,
        field_errors: Optional[dict[str, str]] = None,
        shortfall: Optional[int] = None,
    ) -> SubmissionResult:
        self._state = fs.on_submit_failed(self.state, message, field_errors)
        return SubmissionResult(
            success=False,
            message=message,
            field_errors=dict(field_errors or {}),
            shortfall=shortfall,
            error_kind=error_kind,
        )

    @staticmethod
    def _build_reservation(state: ReservationFormState, guests: list[Guest]) -> Reservation:
        """Assemble the full payload; edits keep id, status and customer id."""
        hour, minute = parse_slot_time(state.selected_slot.time)
        customer = state.customer.model_copy(
            update={"phone": normalize_phone(state.customer.phone)}
        )
        base = state.editing
        if base is not None and customer.id is None:
            customer = customer.model_copy(update={"id": base.customer.id})

        return Reservation(
            id=base.id if base is not None else None,
            customer=customer,
            booking_date=state.selected_date,
            booking_time=datetime.combine(state.selected_date, time(hour, minute)),
            status=base.status if base is not None else ReservationStatus.PENDING,
            note=state.note,
            guests=[g.with_totals() for g in guests],
            walk_in_booking=state.walk_in_booking,
        )
