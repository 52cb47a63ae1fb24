"""
Public clinic-wide schedule: active slots grouped per medic, each with
the dates already booked from today on.

Query parameters ``medics`` (ruts) and ``specialties`` (ids) may be
repeated or comma separated.
"""
from __future__ import annotations

from collections import defaultdict

from django.utils import timezone
from rest_framework.decorators import api_view
from rest_framework.response import Response

from scheduling.exceptions import error_response
from scheduling.models import Appointment, TimeSlot
from scheduling.services.results import Violation

from .common import clean_rut, hhmm, parse_id

INVALID_SPECIALTIES = Violation.invalid('Specialties query contains invalid id.')
INVALID_MEDICS = Violation.invalid('Medics query contains invalid rut.')


def _query_list(request, key: str) -> list[str]:
    values = []
    for raw in request.query_params.getlist(key):
        values.extend(v.strip() for v in raw.split(',') if v.strip())
    return values


@api_view(['GET'])
def clinic_schedule(request):
    medic_ruts = [clean_rut(v) for v in _query_list(request, 'medics')]
    if None in medic_ruts:
        return error_response(INVALID_MEDICS)
    specialty_ids = [parse_id(v) for v in _query_list(request, 'specialties')]
    if None in specialty_ids:
        return error_response(INVALID_SPECIALTIES)

    slots = (
        TimeSlot.objects
        .filter(active=True, schedule__medic__isnull=False)
        .select_related('schedule__medic__employee', 'schedule__medic__specialty')
        .order_by('start', 'day')
    )
    if medic_ruts:
        slots = slots.filter(schedule__medic__employee_id__in=medic_ruts)
    if specialty_ids:
        slots = slots.filter(schedule__medic__specialty_id__in=specialty_ids)
    slots = list(slots)

    booked = defaultdict(list)
    dates = (
        Appointment.objects
        .filter(time_slot__in=[s.id for s in slots], date__gte=timezone.localdate())
        .order_by('date')
        .values_list('time_slot_id', 'date')
    )
    for slot_id, date in dates:
        booked[slot_id].append(date.isoformat())

    grouped: dict[str, dict] = {}
    for slot in slots:
        medic = slot.schedule.medic
        entry = grouped.get(medic.employee_id)
        if entry is None:
            entry = grouped[medic.employee_id] = {
                'rut': medic.employee_id,
                'fullName': medic.employee.full_name,
                'specialty': medic.specialty.name,
                'slots': [],
            }
        entry['slots'].append({
            'id': slot.id,
            'day': slot.day,
            'start': hhmm(slot.start),
            'end': hhmm(slot.end),
            'appointmentDates': booked[slot.id],
        })
    return Response(list(grouped.values()))
