"""
Patient endpoints.

Anyone may register (``POST /patients/<rut>``).  Reading or editing a
profile and managing appointments is limited to the patient in the path
or an admin.  Patients book for themselves and may not confirm.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from scheduling.exceptions import error_response
from scheduling.models import Appointment, TimeSlot
from scheduling.permissions import PATIENT_OR_ADMIN, SessionGate
from scheduling.serializers.base import first_violation
from scheduling.serializers.people import PatientSerializer
from scheduling.serializers.scheduling import (
    PATIENT_CREATE_FIELDS,
    PATIENT_UPDATE_FIELDS,
    AppointmentSerializer,
)
from scheduling.services import appointments as booking
from scheduling.services.people import get_patient, register_patient, update_person
from scheduling.services.results import Violation

from .common import INVALID_RUT, appointment_data, clean_rut, parse_id, person_data, updated

INVALID_APPOINTMENT_ID = Violation.invalid('Invalid appointment id.')


def _patient_missing(rut):
    return error_response(Violation.not_found(f'Patient {rut} does not exist.'))


def _patient_data(patient) -> dict:
    data = person_data(patient)
    data.update({
        'weight': patient.weight,
        'height': patient.height,
        'rhesusFactor': patient.rhesus_factor,
        'bloodType': patient.blood_type.name,
        'insuranceType': patient.insurance_type.name,
        'medicalRecord': {},
    })
    record = getattr(patient, 'medical_record', None)
    if record is not None:
        data['medicalRecord'] = {
            key: value for key, value in (
                ('allergiesHistory', record.allergies_history),
                ('morbidityHistory', record.morbidity_history),
                ('surgicalHistory', record.surgical_history),
                ('medications', record.medications),
            ) if value
        }
    return data


@api_view(['POST', 'GET', 'PATCH'])
@permission_classes([SessionGate.route(GET=PATIENT_OR_ADMIN, PATCH=PATIENT_OR_ADMIN, self_scope='rut')])
def patient_resource(request, rut):
    rut = clean_rut(rut)
    if rut is None:
        return error_response(INVALID_RUT)

    if request.method == 'POST':
        s = PatientSerializer(data=request.data)
        violation = first_violation(s)
        if violation:
            return error_response(violation)
        result = register_patient(rut, s.validated_data)
        if isinstance(result, Violation):
            return error_response(result)
        return Response(_patient_data(result), status=status.HTTP_201_CREATED)

    patient = get_patient(rut)
    if patient is None:
        return _patient_missing(rut)
    if request.method == 'GET':
        return Response(_patient_data(patient))

    s = PatientSerializer(patient, data=request.data, partial=True)
    violation = first_violation(s)
    if violation:
        return error_response(violation)
    return updated(update_person(patient, s.validated_data))


@api_view(['GET', 'POST'])
@permission_classes([SessionGate.route(GET=PATIENT_OR_ADMIN, POST=PATIENT_OR_ADMIN, self_scope='rut')])
def patient_appointments(request, rut):
    rut = clean_rut(rut)
    if rut is None:
        return error_response(INVALID_RUT)
    patient = get_patient(rut)
    if patient is None:
        return _patient_missing(rut)

    if request.method == 'GET':
        qs = booking.upcoming(patient.appointments.select_related(
            'time_slot__schedule__medic__employee', 'time_slot__schedule__medic__specialty',
        ))
        return Response([appointment_data(a, with_medic=True) for a in qs])

    s = AppointmentSerializer(data=request.data, fields=PATIENT_CREATE_FIELDS)
    violation = first_violation(s)
    if violation:
        return error_response(violation)
    data = s.validated_data
    result = booking.book_appointment(
        patient=patient,
        slot=TimeSlot.objects.get(pk=data['time_slot_id']),
        date=data['date'],
        description=data['description'],
    )
    if isinstance(result, Violation):
        return error_response(result)
    return Response(appointment_data(result), status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([SessionGate.route(PATCH=PATIENT_OR_ADMIN, DELETE=PATIENT_OR_ADMIN, self_scope='rut')])
def patient_appointment_detail(request, rut, appointment_id):
    rut = clean_rut(rut)
    if rut is None:
        return error_response(INVALID_RUT)
    pk = parse_id(appointment_id)
    if pk is None:
        return error_response(INVALID_APPOINTMENT_ID)
    if get_patient(rut) is None:
        return _patient_missing(rut)
    appointment = (
        Appointment.objects.select_related('time_slot__schedule__medic__employee', 'patient')
        .filter(pk=pk, patient_id=rut).first()
    )
    if appointment is None:
        return error_response(Violation.not_found(f'Appointment {pk} for patient {rut} does not exist.'))

    if request.method == 'DELETE':
        booking.cancel_appointment(appointment)
        return Response(status=status.HTTP_204_NO_CONTENT)

    s = AppointmentSerializer(appointment, data=request.data, partial=True, fields=PATIENT_UPDATE_FIELDS)
    violation = first_violation(s)
    if violation:
        return error_response(violation)
    result = booking.update_appointment(appointment, s.validated_data)
    if isinstance(result, Violation):
        return error_response(result)
    return updated(result)
