"""
Staff assignment for a chosen time slot.

Rules, in order of precedence:

1. Specific staff selected: every service of every guest gets that staff.
2. Rescheduling an existing reservation with "any professional": a
   guest-service keeps its previous staff when that staff is still free
   in the new slot.
3. "Any professional", one guest: one staff drawn at random from the slot.
4. "Any professional", several guests: guest i gets the slot's i-th staff.
   The mapping is positional so re-resolving the same slot is stable.

Usage:
    resolver = StaffAssignmentResolver(rng=random.Random(7))
    assigned = resolver.resolve(slot, StaffSelection.any(), guests)
"""

import logging
import random
from collections.abc import Mapping
from typing import Optional

from reservation_engine.errors import InsufficientStaffError
from reservation_engine.schemas.availability_schema import StaffSelection, TimeSlot
from reservation_engine.schemas.reservation_schema import (
    ANY_PROFESSIONAL_ID,
    Guest,
    Staff,
)

logger = logging.getLogger(__name__)

# guest index -> service item id -> previous staff id
_PreviousAssignments = dict[int, dict[int, int]]


def _previous_assignments(previous_guests: Optional[list[Guest]]) -> _PreviousAssignments:
    result: _PreviousAssignments = {}
    for index, guest in enumerate(previous_guests or []):
        by_service: dict[int, int] = {}
        for guest_service in guest.services:
            staff = guest_service.assigned_staff
            if staff is None or staff.id in (None, ANY_PROFESSIONAL_ID):
                continue
            by_service[guest_service.service_item.id] = staff.id
        result[index] = by_service
    return result


class StaffAssignmentResolver:
    """
    Resolves the staff for every guest-service of a booking.

    Inputs are never mutated: ``resolve`` returns new Guest objects, and
    raises before building any of them when the slot is short of staff.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        staff_lookup: Optional[Mapping[int, Staff]] = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._staff_lookup: dict[int, Staff] = dict(staff_lookup or {})

    def update_staff_lookup(self, staff: list[Staff]) -> None:
        """Refresh the id -> Staff records used to fill in assignments."""
        self._staff_lookup = {s.id: s for s in staff if s.id is not None}

    def resolve(
        self,
        slot: TimeSlot,
        selection: StaffSelection,
        guests: list[Guest],
        previous_guests: Optional[list[Guest]] = None,
    ) -> list[Guest]:
        """
        Assign staff to every service of every guest.

        Args:
            slot: The selected time slot.
            selection: Specific staff member, or any professional.
            guests: Guests with their chosen services.
            previous_guests: Guests of the reservation being rescheduled,
                in the same order; None when creating.

        Returns:
            Copies of ``guests`` with ``assigned_staff`` filled in.

        Raises:
            InsufficientStaffError: A group booking needs more free staff
                than the slot offers.
        """
        if not selection.is_any:
            plan = self._plan_specific(selection.staff_id, guests)
        elif len(guests) > 1:
            plan = self._plan_group(slot, guests, _previous_assignments(previous_guests))
        else:
            plan = self._plan_single(slot, guests, _previous_assignments(previous_guests))

        assigned = [self._apply(guest, plan[index]) for index, guest in enumerate(guests)]
        logger.debug(
            "Resolved staff at %s for %d guest(s): %s",
            slot.time, len(guests), plan,
        )
        return assigned

    # ------------------------------------------------------------------ #
    # Planning: guest index -> list of staff ids, one per service
    # ------------------------------------------------------------------ #

    @staticmethod
    def _plan_specific(staff_id: int, guests: list[Guest]) -> list[list[int]]:
        return [[staff_id] * len(guest.services) for guest in guests]

    def _plan_single(
        self,
        slot: TimeSlot,
        guests: list[Guest],
        previous: _PreviousAssignments,
    ) -> list[list[int]]:
        plan: list[list[int]] = []
        for index, guest in enumerate(guests):
            kept = self._kept_for_guest(slot, guest, previous.get(index, {}))
            fallback: Optional[int] = None
            if any(staff_id is None for staff_id in kept):
                if not slot.staff_ids:
                    raise InsufficientStaffError(required=1, available=0)
                fallback = self._rng.choice(slot.staff_ids)
            plan.append([fallback if s is None else s for s in kept])
        return plan

    def _plan_group(
        self,
        slot: TimeSlot,
        guests: list[Guest],
        previous: _PreviousAssignments,
    ) -> list[list[int]]:
        if slot.capacity < len(guests):
            raise InsufficientStaffError(required=len(guests), available=slot.capacity)

        # A staff id kept by an earlier guest cannot be kept by a later one.
        kept_per_guest: list[list[Optional[int]]] = []
        taken: set[int] = set()
        for index, guest in enumerate(guests):
            kept = [
                None if s in taken else s
                for s in self._kept_for_guest(slot, guest, previous.get(index, {}))
            ]
            taken.update(s for s in kept if s is not None)
            kept_per_guest.append(kept)

        free = [s for s in slot.staff_ids if s not in taken]
        needing = sum(1 for kept in kept_per_guest if None in kept)
        if len(free) < needing:
            raise InsufficientStaffError(required=needing, available=len(free))

        free_iter = iter(free)
        plan: list[list[int]] = []
        for kept in kept_per_guest:
            if None not in kept:
                plan.append(kept)
                continue
            fallback = next(free_iter)
            plan.append([fallback if s is None else s for s in kept])
        return plan

    @staticmethod
    def _kept_for_guest(
        slot: TimeSlot, guest: Guest, previous: dict[int, int]
    ) -> list[Optional[int]]:
        """Previous staff per service when still free in the slot, else None."""
        kept: list[Optional[int]] = []
        for guest_service in guest.services:
            staff_id = previous.get(guest_service.service_item.id)
            kept.append(staff_id if staff_id is not None and slot.has_staff(staff_id) else None)
        return kept

    # ------------------------------------------------------------------ #
    # Building the assigned copies
    # ------------------------------------------------------------------ #

    def _staff(self, staff_id: int) -> Staff:
        return self._staff_lookup.get(staff_id) or Staff(id=staff_id)

    def _apply(self, guest: Guest, staff_ids: list[int]) -> Guest:
        services = [
            guest_service.model_copy(update={"assigned_staff": self._staff(staff_id)})
            for guest_service, staff_id in zip(guest.services, staff_ids)
        ]
        return guest.model_copy(update={"services": services})
