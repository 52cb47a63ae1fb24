"""Request schemas for appointments, time slots and the clinic."""
from __future__ import annotations

from rest_framework import serializers

from scheduling.models import DAY_CHOICES, Patient, TimeSlot

from .base import SchemaSerializer, conflict
from .fields import (
    DateStringField,
    EmailField,
    PhoneField,
    ReferenceField,
    RutField,
    StrictBooleanField,
    TextField,
    TimeOfDayField,
)

CONFIRMATION_ONE_WAY = 'Appointment confirmed status can only be changed from false to true.'

# Field sets per route.  Patients book for themselves (rut from the path)
# and may not confirm.
MEDIC_CREATE_FIELDS = ('patientRut', 'date', 'timeSlotId', 'description')
MEDIC_UPDATE_FIELDS = ('date', 'timeSlotId', 'description', 'confirmed')
PATIENT_CREATE_FIELDS = ('date', 'timeSlotId', 'description')
PATIENT_UPDATE_FIELDS = ('date', 'timeSlotId', 'description')


class AppointmentSerializer(SchemaSerializer):
    patientRut = RutField(source='patient_id')
    date = DateStringField(not_past=True)
    timeSlotId = ReferenceField(TimeSlot.objects.filter(active=True), source='time_slot_id')
    description = TextField(max_length=1000)
    confirmed = StrictBooleanField(required=False)

    def validate_patientRut(self, value):
        if not Patient.objects.filter(pk=value).exists():
            raise serializers.ValidationError('Unknown patient.', code='does_not_exist')
        return value

    def validate_confirmed(self, value):
        if value is not True or (self.instance is not None and self.instance.confirmed):
            raise conflict(CONFIRMATION_ONE_WAY)
        return value


class TimeSlotSerializer(SchemaSerializer):
    day = serializers.ChoiceField(choices=DAY_CHOICES)
    start = TimeOfDayField()
    end = TimeOfDayField()
    active = StrictBooleanField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('start'), attrs.get('end')
        if start is not None and end is not None and start >= end:
            raise serializers.ValidationError('Invalid time range.')
        return attrs


class ClinicSerializer(SchemaSerializer):
    name = TextField(max_length=64)
    email = EmailField(max_length=254)
    phone = PhoneField()
    address = TextField(max_length=128)
    openingTime = TimeOfDayField(source='opening_time')
    closingTime = TimeOfDayField(source='closing_time')
