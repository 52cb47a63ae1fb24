"""
Patients, medics and admins: registration, profile updates and login.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from rest_framework import status

from scheduling.models import Employee, MedicalRecord, Medic, Patient, Role
from scheduling.services.results import Violation
from scheduling.services.sessions import get_registry

logger = logging.getLogger(__name__)

INCORRECT_PASSWORD = 'Incorrect password.'


def get_patient(rut: str) -> Optional[Patient]:
    return Patient.objects.select_related('blood_type', 'insurance_type').filter(pk=rut).first()


def get_medic(rut: str) -> Optional[Medic]:
    return Medic.objects.select_related('employee', 'specialty', 'schedule').filter(pk=rut).first()


def get_admin(rut: str) -> Optional[Employee]:
    return Employee.objects.filter(pk=rut, type=Employee.ADMIN_STAFF).first()


def register_patient(rut: str, data: dict) -> Patient | Violation:
    if Patient.objects.filter(pk=rut).exists():
        return Violation.conflict(f'Patient with rut {rut} already exists.')
    data = dict(data)
    password = data.pop('password')
    with transaction.atomic():
        patient = Patient(rut=rut, **data)
        patient.set_password(password)
        patient.save(force_insert=True)
        MedicalRecord.objects.create(patient=patient)
    logger.info('Registered patient %s', rut)
    return patient


def apply_changes(instance, changes: dict) -> list[str]:
    """Set changed attributes on ``instance``; returns the changed field names.

    ``password`` is compared against the stored hash and re-hashed when new.
    """
    changed = []
    for key, value in changes.items():
        if key == 'password':
            if not instance.check_password(value):
                instance.set_password(value)
                changed.append(key)
            continue
        if getattr(instance, key) != value:
            setattr(instance, key, value)
            changed.append(key)
    return changed


def update_person(person, changes: dict) -> bool:
    changed = apply_changes(person, changes)
    if not changed:
        return False
    person.save(update_fields=changed)
    logger.info('Updated %s %s: %s', type(person).__name__.lower(), person.pk, ', '.join(sorted(changed)))
    return True


def update_medic(medic: Medic, changes: dict) -> bool:
    changes = dict(changes)
    specialty_id = changes.pop('specialty_id', None)
    with transaction.atomic():
        updated = update_person(medic.employee, changes)
        if specialty_id is not None and specialty_id != medic.specialty_id:
            medic.specialty_id = specialty_id
            medic.save(update_fields=['specialty'])
            updated = True
    return updated


def open_session(subject: Patient | Employee, password: str) -> str | Violation:
    if not subject.check_password(password):
        logger.info('Rejected login for %s', subject.pk)
        return Violation(status.HTTP_401_UNAUTHORIZED, INCORRECT_PASSWORD)
    role = Role.PATIENT if isinstance(subject, Patient) else subject.role
    return get_registry().issue(subject.pk, role)
