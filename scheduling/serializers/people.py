"""Request schemas for patients, medics and admins."""
from __future__ import annotations

from rest_framework import serializers

from scheduling.models import BloodType, Employee, InsuranceType, Patient, Specialty

from .base import SchemaSerializer, conflict
from .fields import (
    DateStringField,
    EmailField,
    PasswordField,
    PhoneField,
    PositiveNumberField,
    ReferenceField,
    TextField,
)


class PersonSerializer(SchemaSerializer):
    """Fields shared by every person; email and phone are unique per table."""
    unique_model = None
    duplicate_message = '{model} with {key} {value} already exists.'

    firstName = TextField(source='first_name', max_length=64)
    secondName = TextField(source='second_name', max_length=64, required=False, allow_blank=True, allow_null=True)
    firstLastName = TextField(source='first_last_name', max_length=64)
    secondLastName = TextField(
        source='second_last_name', max_length=64, required=False, allow_blank=True, allow_null=True
    )
    email = EmailField(max_length=254)
    phone = PhoneField()
    birthDate = DateStringField(source='birth_date')
    gender = TextField(max_length=32)

    def _ensure_unique(self, key, value):
        qs = self.unique_model.objects.filter(**{key: value})
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise conflict(self.duplicate_message.format(key=key, value=value))
        return value

    def validate_secondName(self, value):
        return value or None

    def validate_secondLastName(self, value):
        return value or None

    def validate_email(self, value):
        return self._ensure_unique('email', value)

    def validate_phone(self, value):
        return self._ensure_unique('phone', value)


class PatientSerializer(PersonSerializer):
    unique_model = Patient
    duplicate_message = 'Patient with {key} {value} already exists.'

    weight = PositiveNumberField()
    height = PositiveNumberField()
    rhesusFactor = serializers.ChoiceField(source='rhesus_factor', choices=Patient.RHESUS_CHOICES)
    bloodTypeId = ReferenceField(BloodType.objects.all(), source='blood_type_id')
    insuranceTypeId = ReferenceField(InsuranceType.objects.all(), source='insurance_type_id')
    password = PasswordField()


class EmployeeSerializer(PersonSerializer):
    """Admin profile updates."""
    unique_model = Employee
    duplicate_message = 'An employee with {key} {value} already exists.'

    password = PasswordField()


class MedicSerializer(EmployeeSerializer):
    specialtyId = ReferenceField(Specialty.objects.all(), source='specialty_id')
