"""
Time slot overlap checks and lifecycle rules.

Two ranges overlap when they share a start, share an end, or one range
has an endpoint strictly inside the other (including full containment).
A slot ending exactly when another starts does not overlap it.

Lifecycle policy:

* deleting a slot is refused while *any* appointment references it;
* deactivating is refused only while an appointment dated today or
  later references it, so a slot with only past bookings can be retired;
* changing day/start/end is refused once any appointment is attached;
* (re)activating or reshaping a slot re-runs the overlap check against
  the other active slots of the schedule.
"""
from __future__ import annotations

import datetime
import logging
from typing import Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from scheduling.models import Schedule, TimeSlot
from scheduling.services.results import Violation

logger = logging.getLogger(__name__)

SLOT_OVERLAPS = 'Time slot overlaps with another.'
SLOT_BOOKED = 'Time slot has appointments associated.'
SLOT_UPCOMING = 'Time slot has upcoming appointments.'
INVALID_RANGE = 'Invalid time range.'

SHAPE_FIELDS = ('day', 'start', 'end')


def slots_overlap(start_a, end_a, start_b, end_b) -> bool:
    """Whether range B conflicts with range A under the six-way rule."""
    return (
        start_a == start_b
        or end_a == end_b
        or start_a < start_b < end_a
        or start_a < end_b < end_a
        or (start_b < start_a and end_a < end_b)
        or (start_a < start_b and end_b < end_a)
    )


def overlap_filter(start, end, prefix: str = '') -> Q:
    """``Q`` matching stored ranges that overlap ``start``-``end``.

    ``prefix`` points at the slot relation, e.g. ``'time_slot__'`` when
    filtering appointments.
    """
    s, e = f'{prefix}start', f'{prefix}end'
    return (
        Q(**{s: start})
        | Q(**{e: end})
        | Q(**{f'{s}__lt': start, f'{e}__gt': start})
        | Q(**{f'{s}__lt': end, f'{e}__gt': end})
        | Q(**{f'{s}__gt': start, f'{e}__lt': end})
        | Q(**{f'{s}__lt': start, f'{e}__gt': end})
    )


def find_overlapping_slot(schedule_id: int, day: str, start, end,
                          exclude_id: Optional[int] = None) -> Optional[TimeSlot]:
    qs = TimeSlot.objects.filter(schedule_id=schedule_id, day=day, active=True).filter(overlap_filter(start, end))
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.order_by('start').first()


def check_new_slot(schedule_id: int, day: str, start, end) -> Optional[Violation]:
    if start >= end:
        return Violation.invalid(INVALID_RANGE)
    if find_overlapping_slot(schedule_id, day, start, end):
        return Violation.conflict(SLOT_OVERLAPS)
    return None


def _lock_schedule(schedule_id: int) -> None:
    # serialize writers on the same schedule (no-op on SQLite)
    list(Schedule.objects.select_for_update().filter(pk=schedule_id).values_list('pk', flat=True))


def create_slot(schedule_id: int, *, day: str, start: datetime.time, end: datetime.time) -> TimeSlot | Violation:
    with transaction.atomic():
        _lock_schedule(schedule_id)
        violation = check_new_slot(schedule_id, day, start, end)
        if violation:
            logger.info('Slot %s %s-%s rejected on schedule %s: %s', day, start, end, schedule_id, violation.message)
            return violation
        return TimeSlot.objects.create(schedule_id=schedule_id, day=day, start=start, end=end)


def update_slot(slot: TimeSlot, changes: dict, *, today: Optional[datetime.date] = None) -> bool | Violation:
    """Apply ``changes`` to ``slot``.

    Returns True when the row changed, False for an empty diff, or the
    :class:`Violation` that blocked the update.
    """
    today = today or timezone.localdate()
    with transaction.atomic():
        _lock_schedule(slot.schedule_id)
        slot = TimeSlot.objects.get(pk=slot.pk)
        diff = {k: v for k, v in changes.items() if getattr(slot, k) != v}
        if not diff:
            return False

        day = diff.get('day', slot.day)
        start = diff.get('start', slot.start)
        end = diff.get('end', slot.end)
        active = diff.get('active', slot.active)
        if start >= end:
            return Violation.invalid(INVALID_RANGE)

        reshaped = any(k in diff for k in SHAPE_FIELDS)
        if active and (reshaped or 'active' in diff):
            if find_overlapping_slot(slot.schedule_id, day, start, end, exclude_id=slot.pk):
                return Violation.conflict(SLOT_OVERLAPS)
        if reshaped and slot.appointments.exists():
            return Violation.conflict(SLOT_BOOKED)
        if diff.get('active') is False and slot.appointments.filter(date__gte=today).exists():
            return Violation.conflict(SLOT_UPCOMING)

        for key, value in diff.items():
            setattr(slot, key, value)
        slot.save(update_fields=list(diff))
    logger.info('Updated slot %s: %s', slot.pk, ', '.join(sorted(diff)))
    return True


def delete_slot(slot: TimeSlot) -> Optional[Violation]:
    slot_id = slot.pk
    with transaction.atomic():
        _lock_schedule(slot.schedule_id)
        if slot.appointments.exists():
            return Violation.conflict(SLOT_BOOKED)
        slot.delete()
    logger.info('Deleted slot %s', slot_id)
    return None
