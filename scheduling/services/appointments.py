"""
Appointment booking rules.

A booking must pass, in order:

1. day match: the date falls on the slot's weekday;
2. not started: for a booking today, the slot's start is still ahead;
3. overlap: no other appointment on that date for the same patient or
   the same medic whose slot overlaps the candidate slot.

Once booked, an appointment keeps its medic: moving it to a slot on a
different schedule is a conflict.  Confirmation only goes false -> true
(enforced by ``AppointmentSerializer.validate_confirmed``).

The checks run inside a transaction that locks the medic's schedule and
the patient row; the ``(time_slot, date)`` unique constraint rejects any
concurrent writer that still slips through.
"""
from __future__ import annotations

import datetime
import logging
from typing import Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from scheduling.models import Appointment, Medic, Patient, Schedule, TimeSlot
from scheduling.services import notifications
from scheduling.services.results import Violation
from scheduling.services.slots import overlap_filter

logger = logging.getLogger(__name__)

DAY_CODES = ('mo', 'tu', 'we', 'th', 'fr', 'sa', 'su')

DAY_MISMATCH = 'Appointment day and time slot day do not match.'
ALREADY_STARTED = 'Time slot has already started.'
OVERLAPS = 'Appointment overlaps with another.'
MEDIC_CHANGED = 'Appointment medic cannot be changed.'
FOREIGN_SLOT = 'Time slot does not belong to medic.'


def day_code(value: datetime.date) -> str:
    return DAY_CODES[value.weekday()]


def check_appointment(*, patient_rut: str, slot: TimeSlot, date: datetime.date,
                      exclude_id: Optional[int] = None, now=None) -> Optional[Violation]:
    now = timezone.localtime(now) if now is not None else timezone.localtime()
    if day_code(date) != slot.day:
        return Violation.conflict(DAY_MISMATCH)
    if date == now.date() and slot.start <= now.time():
        return Violation.conflict(ALREADY_STARTED)

    clashes = (
        Appointment.objects
        .filter(date=date)
        .filter(Q(patient_id=patient_rut) | Q(time_slot__schedule_id=slot.schedule_id))
        .filter(overlap_filter(slot.start, slot.end, prefix='time_slot__'))
    )
    if exclude_id is not None:
        clashes = clashes.exclude(pk=exclude_id)
    if clashes.exists():
        return Violation.conflict(OVERLAPS)
    return None


def check_same_medic(appointment: Appointment, slot: TimeSlot) -> Optional[Violation]:
    # a schedule belongs to exactly one medic
    if appointment.time_slot.schedule_id != slot.schedule_id:
        return Violation.conflict(MEDIC_CHANGED)
    return None


def _lock(schedule_id: int, patient_rut: str) -> None:
    # fixed order (schedule, then patient) to avoid deadlocks between writers
    list(Schedule.objects.select_for_update().filter(pk=schedule_id).values_list('pk', flat=True))
    list(Patient.objects.select_for_update().filter(pk=patient_rut).values_list('pk', flat=True))


def book_appointment(*, patient: Patient, slot: TimeSlot, date: datetime.date, description: str,
                     medic: Optional[Medic] = None, now=None) -> Appointment | Violation:
    """Create an appointment; ``medic`` restricts the slot to that medic's schedule."""
    if medic is not None and slot.schedule_id != medic.schedule_id:
        return Violation.conflict(FOREIGN_SLOT)
    with transaction.atomic():
        _lock(slot.schedule_id, patient.pk)
        violation = check_appointment(patient_rut=patient.pk, slot=slot, date=date, now=now)
        if violation:
            logger.info('Booking for %s on %s rejected: %s', patient.pk, date, violation.message)
            return violation
        appointment = Appointment.objects.create(
            patient=patient, time_slot=slot, date=date, description=description,
        )
        notifications.appointment_booked(appointment)
    logger.info('Booked appointment %s for %s on %s', appointment.pk, patient.pk, date)
    return appointment


def update_appointment(appointment: Appointment, changes: dict, *, now=None) -> bool | Violation:
    """Apply validated ``changes`` (model field names) to ``appointment``.

    Returns True when something changed, False for an empty diff.  The
    timing checks re-run only when the date or the slot changes.
    """
    with transaction.atomic():
        _lock(appointment.time_slot.schedule_id, appointment.patient_id)
        appointment = Appointment.objects.select_related('time_slot', 'patient').get(pk=appointment.pk)
        diff = {k: v for k, v in changes.items() if getattr(appointment, k) != v}
        if not diff:
            return False

        if 'date' in diff or 'time_slot_id' in diff:
            slot = appointment.time_slot
            if 'time_slot_id' in diff:
                slot = TimeSlot.objects.get(pk=diff['time_slot_id'])
            violation = check_same_medic(appointment, slot) or check_appointment(
                patient_rut=appointment.patient_id,
                slot=slot,
                date=diff.get('date', appointment.date),
                exclude_id=appointment.pk,
                now=now,
            )
            if violation:
                logger.info('Update of appointment %s rejected: %s', appointment.pk, violation.message)
                return violation

        for key, value in diff.items():
            setattr(appointment, key, value)
        appointment.save(update_fields=list(diff))
        if diff.get('confirmed'):
            notifications.appointment_confirmed(appointment)
    logger.info('Updated appointment %s: %s', appointment.pk, ', '.join(sorted(diff)))
    return True


def cancel_appointment(appointment: Appointment) -> None:
    appointment_id = appointment.pk
    with transaction.atomic():
        notifications.appointment_cancelled(appointment)
        appointment.delete()
    logger.info('Cancelled appointment %s', appointment_id)


def upcoming(qs, today: Optional[datetime.date] = None):
    """Appointments from today on, on active slots."""
    today = today or timezone.localdate()
    return qs.filter(date__gte=today, time_slot__active=True).order_by('date', 'time_slot__start')
