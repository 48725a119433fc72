"""
Availability filtering: raw staff-availability feed -> bookable time slots.

The remote feed is hour-granular, so the "already past" cutoff for today
compares hours only. A slot is kept when its hour is strictly greater
than the current hour, even if its minutes would still be in the future.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Optional, Union

from reservation_engine.schemas.availability_schema import TimeSlot
from reservation_engine.schemas.reservation_schema import ANY_PROFESSIONAL_ID
from reservation_engine.utils import parse_slot_time

logger = logging.getLogger(__name__)

RawAvailability = Union[Mapping[str, Iterable[int]], Iterable[tuple[str, Iterable[int]]]]


def _iter_entries(raw: RawAvailability) -> Iterable[tuple[str, Iterable[int]]]:
    if isinstance(raw, Mapping):
        return raw.items()
    return raw


def _unique_in_order(staff_ids: Iterable[int]) -> tuple[int, ...]:
    """Distinct integer staff ids in feed order; malformed ids are skipped."""
    unique: dict[int, None] = {}
    if isinstance(staff_ids, (str, bytes)) or not isinstance(staff_ids, Iterable):
        logger.warning("Skipping malformed staff list %r", staff_ids)
        return ()
    for raw_id in staff_ids:
        try:
            unique[int(raw_id)] = None
        except (ValueError, TypeError):
            logger.warning("Skipping malformed staff id %r", raw_id)
    return tuple(unique)


def filter_slots(
    raw: Optional[RawAvailability],
    date: date,
    now: datetime,
    required_headcount: int = 1,
    staff_id: Optional[int] = None,
) -> list[TimeSlot]:
    """
    Turn a raw time -> staff-ids feed into the ordered list of bookable slots.

    Args:
        raw: Mapping of "HH:mm" to staff ids, or (time, ids) pairs which may
            repeat a time when two feeds were merged.
        date: The date the feed was fetched for.
        now: Current moment; only its date and hour are consulted.
        required_headcount: Staff that must be simultaneously free (one per guest).
        staff_id: A specific staff member the slot must include; None or 0
            means any professional.

    Returns:
        Slots sorted by time of day. Empty when nothing qualifies.
    """
    if not raw:
        return []

    today = now.date()
    if date < today:
        return []

    # Keyed by the canonical "HH:mm" label so " 9:00" and "09:00" collide.
    seen: set[str] = set()
    slots: list[TimeSlot] = []
    for time, staff_ids in _iter_entries(raw):
        try:
            hour, minute = parse_slot_time(time)
        except (ValueError, AttributeError, TypeError):
            logger.warning("Skipping malformed availability time %r", time)
            continue
        label = f"{hour:02d}:{minute:02d}"
        if label in seen:
            continue
        seen.add(label)

        ids = _unique_in_order(staff_ids or ())
        if len(ids) < required_headcount:
            continue
        if date == today and hour <= now.hour:
            continue
        if staff_id and staff_id != ANY_PROFESSIONAL_ID and staff_id not in ids:
            continue

        slots.append(TimeSlot(time=label, staff_ids=ids))

    ordered = sorted(slots, key=lambda s: parse_slot_time(s.time))
    logger.debug(
        "Filtered availability for %s: %d slots (headcount=%d)",
        date.isoformat(), len(ordered), required_headcount,
    )
    return ordered
