"""
Medic endpoints: public directory, profile, appointments and the weekly
schedule.  Everything below ``/medics/<rut>`` except the directory entry
itself is limited to that medic or an admin.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from scheduling.exceptions import error_response
from scheduling.models import Appointment, Medic, Patient, TimeSlot
from scheduling.permissions import STAFF, SessionGate
from scheduling.serializers.base import first_violation
from scheduling.serializers.people import MedicSerializer
from scheduling.serializers.scheduling import (
    MEDIC_CREATE_FIELDS,
    MEDIC_UPDATE_FIELDS,
    AppointmentSerializer,
    TimeSlotSerializer,
)
from scheduling.services import appointments as booking
from scheduling.services import slots as slot_rules
from scheduling.services.people import get_medic, update_medic
from scheduling.services.results import Violation

from .common import (
    INVALID_RUT,
    appointment_data,
    clean_rut,
    parse_id,
    person_data,
    slot_data,
    updated,
)

INVALID_APPOINTMENT_ID = Violation.invalid('Invalid appointment id.')
INVALID_SLOT_ID = Violation.invalid('Invalid schedule slot id.')


def _medic_or_error(rut):
    """(medic, None) or (None, error response) for a path rut."""
    rut = clean_rut(rut)
    if rut is None:
        return None, error_response(INVALID_RUT)
    medic = get_medic(rut)
    if medic is None:
        return None, error_response(Violation.not_found(f'Medic {rut} does not exist.'))
    return medic, None


def _medic_data(medic: Medic) -> dict:
    data = person_data(medic.employee)
    data['specialty'] = medic.specialty.name
    data['specialtyId'] = medic.specialty_id
    return data


@api_view(['GET'])
def list_medics(request):
    qs = Medic.objects.select_related('employee', 'specialty').order_by('employee__first_last_name')
    specialty = request.query_params.get('specialty')
    if specialty:
        specialty_id = parse_id(specialty)
        if specialty_id is None:
            return error_response(Violation.invalid('Invalid specialty.'))
        qs = qs.filter(specialty_id=specialty_id)
    return Response([_medic_data(m) for m in qs])


@api_view(['GET', 'PATCH'])
@permission_classes([SessionGate.route(PATCH=STAFF, self_scope='rut')])
def medic_detail(request, rut):
    medic, error = _medic_or_error(rut)
    if error:
        return error
    if request.method == 'GET':
        return Response(_medic_data(medic))

    s = MedicSerializer(medic.employee, data=request.data, partial=True)
    violation = first_violation(s)
    if violation:
        return error_response(violation)
    return updated(update_medic(medic, s.validated_data))


@api_view(['GET', 'POST'])
@permission_classes([SessionGate.route(GET=STAFF, POST=STAFF, self_scope='rut')])
def medic_appointments(request, rut):
    medic, error = _medic_or_error(rut)
    if error:
        return error

    if request.method == 'GET':
        qs = booking.upcoming(
            Appointment.objects.select_related('patient', 'time_slot')
            .filter(time_slot__schedule_id=medic.schedule_id)
        )
        return Response([appointment_data(a, with_patient=True) for a in qs])

    s = AppointmentSerializer(data=request.data, fields=MEDIC_CREATE_FIELDS)
    violation = first_violation(s)
    if violation:
        return error_response(violation)
    data = s.validated_data
    result = booking.book_appointment(
        patient=Patient.objects.get(pk=data['patient_id']),
        slot=TimeSlot.objects.get(pk=data['time_slot_id']),
        date=data['date'],
        description=data['description'],
        medic=medic,
    )
    if isinstance(result, Violation):
        return error_response(result)
    return Response(appointment_data(result), status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([SessionGate.route(PATCH=STAFF, DELETE=STAFF, self_scope='rut')])
def medic_appointment_detail(request, rut, appointment_id):
    pk = parse_id(appointment_id)
    if pk is None:
        return error_response(INVALID_APPOINTMENT_ID)
    medic, error = _medic_or_error(rut)
    if error:
        return error
    appointment = (
        Appointment.objects.select_related('time_slot__schedule__medic__employee', 'patient')
        .filter(pk=pk, time_slot__schedule_id=medic.schedule_id).first()
    )
    if appointment is None:
        return error_response(Violation.not_found(f'Appointment {pk} for medic {medic.rut} does not exist.'))

    if request.method == 'DELETE':
        booking.cancel_appointment(appointment)
        return Response(status=status.HTTP_204_NO_CONTENT)

    s = AppointmentSerializer(appointment, data=request.data, partial=True, fields=MEDIC_UPDATE_FIELDS)
    violation = first_violation(s)
    if violation:
        return error_response(violation)
    result = booking.update_appointment(appointment, s.validated_data)
    if isinstance(result, Violation):
        return error_response(result)
    return updated(result)


@api_view(['GET'])
@permission_classes([SessionGate.route(GET=STAFF, self_scope='rut')])
def medic_schedule(request, rut):
    """Every slot of the medic (active or not) with its upcoming appointments."""
    medic, error = _medic_or_error(rut)
    if error:
        return error
    slots = list(medic.schedule.slots.order_by('day', 'start'))
    by_slot: dict[int, list] = {slot.id: [] for slot in slots}
    appointments = Appointment.objects.filter(
        time_slot__schedule_id=medic.schedule_id, date__gte=timezone.localdate(),
    ).order_by('date')
    for appointment in appointments:
        by_slot[appointment.time_slot_id].append({
            'id': appointment.id,
            'date': appointment.date.isoformat(),
            'patientRut': appointment.patient_id,
            'description': appointment.description,
            'confirmed': appointment.confirmed,
        })
    return Response([dict(slot_data(slot), appointments=by_slot[slot.id]) for slot in slots])


@api_view(['POST'])
@permission_classes([SessionGate.route(POST=STAFF, self_scope='rut')])
def medic_slots(request, rut):
    medic, error = _medic_or_error(rut)
    if error:
        return error
    s = TimeSlotSerializer(data=request.data, fields=('day', 'start', 'end'))
    violation = first_violation(s)
    if violation:
        return error_response(violation)
    result = slot_rules.create_slot(medic.schedule_id, **s.validated_data)
    if isinstance(result, Violation):
        return error_response(result)
    return Response(slot_data(result), status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([SessionGate.route(PATCH=STAFF, DELETE=STAFF, self_scope='rut')])
def medic_slot_detail(request, rut, slot_id):
    pk = parse_id(slot_id)
    if pk is None:
        return error_response(INVALID_SLOT_ID)
    medic, error = _medic_or_error(rut)
    if error:
        return error
    slot = TimeSlot.objects.filter(pk=pk, schedule_id=medic.schedule_id).first()
    if slot is None:
        return error_response(Violation.not_found(f'Time slot {pk} does not exist.'))

    if request.method == 'DELETE':
        violation = slot_rules.delete_slot(slot)
        if violation:
            return error_response(violation)
        return Response(status=status.HTTP_204_NO_CONTENT)

    s = TimeSlotSerializer(slot, data=request.data, partial=True)
    violation = first_violation(s)
    if violation:
        return error_response(violation)
    result = slot_rules.update_slot(slot, s.validated_data)
    if isinstance(result, Violation):
        return error_response(result)
    return updated(result)
