"""
Helpers shared by the API views: path parameter checks and the JSON
shapes returned for people, slots and appointments.
"""
from __future__ import annotations

from typing import Optional

from rest_framework import status
from rest_framework.response import Response

from scheduling.models import Appointment, Person, TimeSlot
from scheduling.services.results import Violation
from scheduling.services.rut import is_valid_rut, normalize_rut

INVALID_RUT = Violation.invalid('Invalid rut.')


def clean_rut(rut: str) -> Optional[str]:
    """Normalized path rut, or None when it fails validation."""
    return normalize_rut(rut) if is_valid_rut(rut) else None


def parse_id(value: str) -> Optional[int]:
    """Positive integer path id, or None."""
    if not value.isascii() or not value.isdigit():
        return None
    number = int(value)
    return number if number > 0 else None


def updated(changed: bool) -> Response:
    return Response(status=status.HTTP_204_NO_CONTENT if changed else status.HTTP_304_NOT_MODIFIED)


def hhmm(value) -> str:
    return value.strftime('%H:%M')


def person_data(person: Person) -> dict:
    data = {
        'rut': person.rut,
        'fullName': person.full_name,
        'firstName': person.first_name,
        'firstLastName': person.first_last_name,
        'email': person.email,
        'phone': person.phone,
        'birthDate': person.birth_date.isoformat(),
        'gender': person.gender,
    }
    if person.second_name:
        data['secondName'] = person.second_name
    if person.second_last_name:
        data['secondLastName'] = person.second_last_name
    return data


def slot_data(slot: TimeSlot) -> dict:
    return {
        'id': slot.id,
        'day': slot.day,
        'start': hhmm(slot.start),
        'end': hhmm(slot.end),
        'active': slot.active,
    }


def appointment_data(appointment: Appointment, *, with_patient: bool = False, with_medic: bool = False) -> dict:
    slot = appointment.time_slot
    data = {
        'id': appointment.id,
        'patientRut': appointment.patient_id,
        'timeSlotId': slot.id,
        'date': appointment.date.isoformat(),
        'day': slot.day,
        'start': hhmm(slot.start),
        'end': hhmm(slot.end),
        'description': appointment.description,
        'confirmed': appointment.confirmed,
    }
    if with_patient:
        patient = appointment.patient
        data.update({
            'patientFullName': patient.full_name,
            'patientBirthDate': patient.birth_date.isoformat(),
            'patientEmail': patient.email,
            'patientPhone': patient.phone,
        })
    if with_medic:
        medic = slot.schedule.medic
        data.update({
            'medicRut': medic.employee_id,
            'medicFullName': medic.employee.full_name,
            'specialty': medic.specialty.name,
        })
    return data
