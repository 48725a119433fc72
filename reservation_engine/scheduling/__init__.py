from reservation_engine.scheduling.availability_filter import filter_slots
from reservation_engine.scheduling.form_state import (
    FetchKey,
    FormPhase,
    ReservationFormState,
)
from reservation_engine.scheduling.orchestrator import (
    ReservationFormOrchestrator,
    SubmissionResult,
)
from reservation_engine.scheduling.staff_assignment import StaffAssignmentResolver

__all__ = [
    "filter_slots",
    "StaffAssignmentResolver",
    "ReservationFormOrchestrator",
    "ReservationFormState",
    "SubmissionResult",
    "FormPhase",
    "FetchKey",
]
