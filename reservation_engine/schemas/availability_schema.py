"""Availability slot and staff-selection models."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

from reservation_engine.schemas.reservation_schema import ANY_PROFESSIONAL_ID

# Raw feed shape: {"HH:mm": [staff ids free at that time]}
AvailabilityMap = dict[str, list[int]]


class TimeSlot(BaseModel):
    """A bookable time and the staff free at it, in feed order."""

    model_config = ConfigDict(frozen=True)

    time: str
    staff_ids: tuple[int, ...]

    @property
    def capacity(self) -> int:
        return len(self.staff_ids)

    def has_staff(self, staff_id: int) -> bool:
        return staff_id in self.staff_ids


@dataclass(frozen=True)
class StaffSelection:
    """Staff filter chosen on the form: one staff member, or anyone."""

    staff_id: int = ANY_PROFESSIONAL_ID

    @classmethod
    def any(cls) -> "StaffSelection":
        return cls(ANY_PROFESSIONAL_ID)

    @classmethod
    def specific(cls, staff_id: int) -> "StaffSelection":
        if staff_id == ANY_PROFESSIONAL_ID:
            raise ValueError("Use StaffSelection.any() for the any-professional option")
        return cls(staff_id)

    @property
    def is_any(self) -> bool:
        return self.staff_id == ANY_PROFESSIONAL_ID
