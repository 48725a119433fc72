"""Tests for the booking form state and its transition table."""

from dataclasses import replace

import pytest

from reservation_engine.errors import InvalidTransitionError, ValidationError
from reservation_engine.scheduling import form_state as fs
from reservation_engine.scheduling.form_state import FetchKey, FormPhase
from reservation_engine.schemas.availability_schema import StaffSelection
from reservation_engine.schemas.reservation_schema import Customer, GuestService

from tests.conftest import COLOUR, TOMORROW, make_guest, make_reservation, make_slot


def _loaded(state, *slots):
    return fs.on_availability_loaded(state, state.pending_fetch, list(slots))


class TestNewForm:
    def test_defaults(self):
        state = fs.new_form(TOMORROW, max_group_size=4)
        assert state.phase == FormPhase.EDITING
        assert state.guest_count == 1
        assert state.guests[0].display_name == "Guest 1"
        assert state.staff_selection.is_any
        assert state.walk_in_booking is True
        assert state.loading is True
        assert state.pending_fetch == FetchKey(TOMORROW, 0, 1)

    def test_edit_form_prefills_from_reservation(self):
        reservation = make_reservation()
        state = fs.form_for_edit(reservation, max_group_size=4)
        assert state.is_edit
        assert state.customer.id == 501
        assert state.note == "Prefers window seat"
        assert state.walk_in_booking is False
        # single guest with staff 2 reopens with that staff selected
        assert state.staff_selection == StaffSelection.specific(2)
        assert state.pending_fetch == FetchKey(reservation.booking_date, 2, 1)

    def test_edit_form_copies_guests(self):
        reservation = make_reservation()
        state = fs.form_for_edit(reservation)
        assert state.guests[0] == reservation.guests[0]
        assert state.guests[0] is not reservation.guests[0]

    def test_edit_group_reservation_uses_any(self):
        reservation = make_reservation(guests=[make_guest("A", staff_id=1), make_guest("B", staff_id=2)])
        state = fs.form_for_edit(reservation, max_group_size=1)
        assert state.staff_selection.is_any
        assert state.max_group_size == 2


class TestAvailabilityInputs:
    def test_date_change_clears_slot_and_rekeys(self):
        state = _loaded(fs.new_form(TOMORROW, 4), make_slot("10:00", 1))
        state = fs.on_slot_select(state, "10:00")
        changed = fs.on_date_change(state, TOMORROW.replace(day=21))
        assert changed.selected_slot is None
        assert changed.available_slots == ()
        assert changed.loading is True
        assert changed.pending_fetch.date == TOMORROW.replace(day=21)

    def test_specific_staff_rekeys_fetch(self):
        state = fs.on_staff_mode_change(fs.new_form(TOMORROW, 4), StaffSelection.specific(3))
        assert state.pending_fetch == FetchKey(TOMORROW, 3, 1)

    def test_specific_staff_rejected_for_group(self):
        state = fs.on_guest_count_change(fs.new_form(TOMORROW, 4), 2)
        with pytest.raises(ValidationError) as exc_info:
            fs.on_staff_mode_change(state, StaffSelection.specific(3))
        assert "staff_selection" in exc_info.value.field_errors

    def test_guest_count_change_resets_staff_to_any(self):
        state = fs.on_staff_mode_change(fs.new_form(TOMORROW, 4), StaffSelection.specific(3))
        state = fs.on_guest_count_change(state, 2)
        assert state.staff_selection.is_any
        assert [g.display_name for g in state.guests] == ["Guest 1", "Guest 2"]
        assert state.pending_fetch == FetchKey(TOMORROW, 0, 2)

    def test_shrinking_keeps_leading_guests(self):
        state = fs.on_guest_count_change(fs.new_form(TOMORROW, 4), 3)
        state = fs.on_guest_services_change(state, 0, [GuestService(service_item=COLOUR)])
        state = fs.on_guest_count_change(state, 1)
        assert state.guest_count == 1
        assert state.guests[0].services[0].service_item == COLOUR

    @pytest.mark.parametrize("count", [0, 5])
    def test_guest_count_out_of_range(self, count):
        with pytest.raises(ValidationError):
            fs.on_guest_count_change(fs.new_form(TOMORROW, 4), count)


class TestStaleResponses:
    def test_response_for_current_key_applied(self):
        state = fs.new_form(TOMORROW, 4)
        loaded = _loaded(state, make_slot("10:00", 1))
        assert loaded.loading is False
        assert [s.time for s in loaded.available_slots] == ["10:00"]

    def test_response_for_old_key_discarded(self):
        state = fs.new_form(TOMORROW, 4)
        old_key = state.pending_fetch
        state = fs.on_guest_count_change(state, 2)
        after = fs.on_availability_loaded(state, old_key, [make_slot("10:00", 1)])
        assert after is state
        assert after.available_slots == ()
        assert after.loading is True

    def test_response_after_cancel_discarded(self):
        state = fs.new_form(TOMORROW, 4)
        key = state.pending_fetch
        cancelled = fs.on_cancel(state)
        assert fs.on_availability_loaded(cancelled, key, [make_slot("10:00", 1)]) is cancelled

    def test_failed_fetch_leaves_empty_list(self):
        state = fs.new_form(TOMORROW, 4)
        failed = fs.on_availability_failed(state, state.pending_fetch)
        assert failed.available_slots == ()
        assert failed.loading is False


class TestSlotSelection:
    def test_select_offered_slot(self):
        state = _loaded(fs.new_form(TOMORROW, 4), make_slot("10:00", 1), make_slot("11:00", 2))
        state = fs.on_slot_select(state, "11:00")
        assert state.selected_slot == make_slot("11:00", 2)

    def test_select_unknown_slot_rejected(self):
        state = _loaded(fs.new_form(TOMORROW, 4), make_slot("10:00", 1))
        with pytest.raises(ValidationError):
            fs.on_slot_select(state, "12:00")


class TestFieldEdits:
    def test_bad_guest_index(self):
        with pytest.raises(IndexError):
            fs.on_guest_services_change(fs.new_form(TOMORROW), 3, [])

    def test_edit_keeps_customer_id(self):
        state = fs.form_for_edit(make_reservation())
        state = fs.on_customer_change(state, Customer(first_name="Janet", phone="0411111111"))
        assert state.customer.id == 501
        assert state.customer.first_name == "Janet"

    def test_create_has_no_customer_id(self):
        state = fs.on_customer_change(fs.new_form(TOMORROW), Customer(first_name="Sam"))
        assert state.customer.id is None

    def test_note_and_walk_in(self):
        state = fs.on_note_change(fs.new_form(TOMORROW), "Allergic to dye")
        state = fs.on_walk_in_change(state, False)
        assert state.note == "Allergic to dye"
        assert state.walk_in_booking is False


class TestLifecycle:
    def test_submit_success_is_terminal(self):
        state = fs.on_submit(fs.new_form(TOMORROW))
        assert state.phase == FormPhase.SUBMITTING
        state = fs.on_submit_succeeded(state, "done")
        assert state.phase == FormPhase.SUBMITTED_SUCCESS
        assert state.is_closed
        with pytest.raises(InvalidTransitionError):
            fs.on_note_change(state, "late")

    def test_failure_keeps_inputs_and_edit_reopens(self):
        state = fs.on_note_change(fs.new_form(TOMORROW), "Keep me")
        state = fs.on_submit(state)
        failed = fs.on_submit_failed(state, "nope", {"customer.phone": "bad"})
        assert failed.phase == FormPhase.SUBMITTED_FAILURE
        assert failed.note == "Keep me"
        assert failed.field_errors == {"customer.phone": "bad"}

        reopened = fs.on_note_change(failed, "Edited")
        assert reopened.phase == FormPhase.EDITING
        assert reopened.field_errors == {}
        assert reopened.result_message is None

    def test_resubmit_after_failure(self):
        state = fs.on_submit_failed(fs.on_submit(fs.new_form(TOMORROW)), "nope")
        assert fs.on_submit(state).phase == FormPhase.SUBMITTING

    def test_double_submit_rejected(self):
        state = fs.on_submit(fs.new_form(TOMORROW))
        with pytest.raises(InvalidTransitionError, match="submitting"):
            fs.on_submit(state)

    def test_cancel_from_editing(self):
        state = fs.on_cancel(fs.new_form(TOMORROW))
        assert state.phase == FormPhase.CANCELLED
        assert state.loading is False

    def test_cannot_cancel_while_submitting(self):
        with pytest.raises(InvalidTransitionError):
            fs.on_cancel(fs.on_submit(fs.new_form(TOMORROW)))

    def test_every_transition_target_is_a_phase(self):
        for (phase, trigger), target in fs.TRANSITIONS.items():
            assert isinstance(target, FormPhase)
            assert phase not in fs.TERMINAL_PHASES

    def test_state_is_immutable(self):
        state = fs.new_form(TOMORROW)
        with pytest.raises(AttributeError):
            state.note = "x"  # type: ignore[misc]
        assert replace(state, note="x").note == "x"
        assert state.note == ""
