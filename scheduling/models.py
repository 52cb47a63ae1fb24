"""
Database models for the clinic backend.

People are identified by their RUT (national id).  Patients and
employees live in separate tables and both carry a hashed password and
the current session token.  A medic is an employee with a specialty and
exactly one weekly schedule; the schedule holds recurring time slots
and appointments book a slot on a concrete date.
"""
from __future__ import annotations

from django.contrib.auth.hashers import check_password, make_password
from django.db import models
from django.db.models import F, Q


DAY_CHOICES = [
    ('mo', 'Monday'),
    ('tu', 'Tuesday'),
    ('we', 'Wednesday'),
    ('th', 'Thursday'),
    ('fr', 'Friday'),
    ('sa', 'Saturday'),
    ('su', 'Sunday'),
]


class Role(models.TextChoices):
    """Roles carried by a session token."""
    PATIENT = 'patient', 'Patient'
    MEDIC = 'medic', 'Medic'
    ADMIN = 'admin', 'Admin'


class Clinic(models.Model):
    """Single row (id 0) with the clinic's public information."""
    SINGLETON_ID = 0

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_ID)
    name = models.CharField(max_length=64)
    email = models.CharField(max_length=254)
    phone = models.PositiveIntegerField()
    address = models.CharField(max_length=128)
    opening_time = models.TimeField()
    closing_time = models.TimeField()

    @classmethod
    def current(cls) -> Clinic | None:
        return cls.objects.filter(pk=cls.SINGLETON_ID).first()

    def __str__(self) -> str:
        return self.name


class BloodType(models.Model):
    name = models.CharField(max_length=3, unique=True)

    def __str__(self) -> str:
        return self.name


class InsuranceType(models.Model):
    name = models.CharField(max_length=16, unique=True)

    def __str__(self) -> str:
        return self.name


class Specialty(models.Model):
    name = models.CharField(max_length=64, unique=True)

    class Meta:
        verbose_name_plural = 'specialties'

    def __str__(self) -> str:
        return self.name


class Person(models.Model):
    """Fields shared by patients and employees."""
    rut = models.CharField(max_length=11, primary_key=True)
    first_name = models.CharField(max_length=64)
    second_name = models.CharField(max_length=64, null=True, blank=True)
    first_last_name = models.CharField(max_length=64)
    second_last_name = models.CharField(max_length=64, null=True, blank=True)
    email = models.CharField(max_length=254, unique=True)
    phone = models.PositiveIntegerField(unique=True)
    birth_date = models.DateField()
    gender = models.CharField(max_length=32)
    password = models.CharField(max_length=128)
    # 86 chars of base64url; null while logged out
    session_token = models.CharField(max_length=86, unique=True, null=True, blank=True)

    class Meta:
        abstract = True

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.second_name, self.first_last_name, self.second_last_name]
        return ' '.join(p for p in parts if p)

    def set_password(self, raw_password: str) -> None:
        self.password = make_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password(raw_password, self.password)

    def __str__(self) -> str:
        return f"{self.full_name} ({self.rut})"


class Patient(Person):
    RHESUS_CHOICES = [('+', 'Positive'), ('-', 'Negative')]

    weight = models.FloatField()
    height = models.FloatField()
    rhesus_factor = models.CharField(max_length=1, choices=RHESUS_CHOICES)
    blood_type = models.ForeignKey(BloodType, on_delete=models.PROTECT, related_name='patients')
    insurance_type = models.ForeignKey(InsuranceType, on_delete=models.PROTECT, related_name='patients')


class MedicalRecord(models.Model):
    patient = models.OneToOneField(
        Patient, primary_key=True, on_delete=models.CASCADE, related_name='medical_record', db_column='patient_rut'
    )
    allergies_history = models.TextField(null=True, blank=True)
    morbidity_history = models.TextField(null=True, blank=True)
    surgical_history = models.TextField(null=True, blank=True)
    medications = models.TextField(null=True, blank=True)

    def __str__(self) -> str:
        return f"Medical record of {self.patient_id}"


class Employee(Person):
    MEDIC = 'medic'
    ADMIN_STAFF = 'admin_staff'
    TYPE_CHOICES = [
        (MEDIC, 'Medic'),
        (ADMIN_STAFF, 'Administrative staff'),
    ]
    type = models.CharField(max_length=16, choices=TYPE_CHOICES, db_index=True)

    @property
    def role(self) -> str:
        return Role.MEDIC if self.type == self.MEDIC else Role.ADMIN


class Schedule(models.Model):
    """Container for a medic's weekly slots."""

    def __str__(self) -> str:
        return f"Schedule {self.pk}"


class Medic(models.Model):
    employee = models.OneToOneField(
        Employee, primary_key=True, on_delete=models.CASCADE, related_name='medic', db_column='rut'
    )
    specialty = models.ForeignKey(Specialty, on_delete=models.PROTECT, related_name='medics')
    schedule = models.OneToOneField(Schedule, on_delete=models.PROTECT, related_name='medic')

    @property
    def rut(self) -> str:
        return self.employee_id

    def __str__(self) -> str:
        return f"Medic {self.employee_id}"


class TimeSlot(models.Model):
    """A recurring weekly window on a schedule.

    Active slots on the same schedule and day never overlap; that rule
    is checked by ``scheduling.services.slots`` before every write.
    """
    schedule = models.ForeignKey(Schedule, on_delete=models.CASCADE, related_name='slots')
    day = models.CharField(max_length=2, choices=DAY_CHOICES)
    start = models.TimeField()
    end = models.TimeField()
    active = models.BooleanField(default=True)

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(start__lt=F('end')), name='time_slot_start_before_end'),
        ]
        indexes = [
            models.Index(fields=['schedule', 'day'], name='time_slot_schedule_day_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.day} {self.start:%H:%M}-{self.end:%H:%M} (schedule {self.schedule_id})"


class Appointment(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments', db_column='patient_rut')
    time_slot = models.ForeignKey(TimeSlot, on_delete=models.PROTECT, related_name='appointments')
    date = models.DateField()
    description = models.CharField(max_length=1000)
    confirmed = models.BooleanField(default=False)

    class Meta:
        constraints = [
            # Store-level backstop for concurrent bookings of the same slot
            models.UniqueConstraint(fields=['time_slot', 'date'], name='appointment_unique_slot_date'),
        ]
        indexes = [
            models.Index(fields=['date'], name='appointment_date_idx'),
        ]

    def __str__(self) -> str:
        return f"Appointment {self.pk} on {self.date} ({self.patient_id})"
