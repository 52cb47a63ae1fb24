# scheduling/management/commands/seed_clinic.py
import datetime

from django.core.management.base import BaseCommand
from django.db import transaction

from scheduling.models import (
    BloodType,
    Clinic,
    Employee,
    InsuranceType,
    MedicalRecord,
    Medic,
    Patient,
    Schedule,
    Specialty,
    TimeSlot,
)

BLOOD_TYPES = ['A', 'B', 'AB', 'O']
INSURANCE_TYPES = ['Fonasa', 'Isapre']
SPECIALTIES = [
    'Allergy and Immunology', 'Dermatology', 'Family Medicine', 'General Practitioner',
    'Internal Medicine', 'Medical Genetics', 'Neurology', 'Obstetrics and Gynecology',
    'Ophthalmology', 'Pediatrics', 'Physical and Rehabilitation', 'Preventive Medicine',
    'Psychiatry', 'Oncology', 'Plastic Surgeon', 'Urology',
]
DAYS = ['mo', 'tu', 'we', 'th', 'fr', 'sa', 'su']

PATIENTS = [
    dict(rut='1000000-9', first_name='Name 1', second_name='Name 2', first_last_name='Surname 1',
         second_last_name='Surname 2', email='my@email.com', phone=923456789, birth_date='2000-01-01',
         gender='Male', weight=70, height=180, rhesus_factor='+', blood_type='A', insurance_type='Fonasa'),
    dict(rut='2000000-7', first_name='Name 3', second_name='Name 4', first_last_name='Surname 3',
         second_last_name='Surname 4', email='an@email.com', phone=987654321, birth_date='2002-02-20',
         gender='Female', weight=60, height=175, rhesus_factor='-', blood_type='B', insurance_type='Isapre'),
]

# (employee fields, specialty, first slot hour)
MEDICS = [
    (dict(rut='3000000-5', first_name='Name 5', second_name='Name 6', first_last_name='Surname 5',
          second_last_name='Surname 6', email='a@clinic.cl', phone=934567890, birth_date='1990-12-30',
          gender='Male'), 'Allergy and Immunology', 8),
    (dict(rut='4000000-3', first_name='Name 7', first_last_name='Surname 7', email='b@clinic.cl',
          phone=976543210, birth_date='1980-02-14', gender='Female'), 'Internal Medicine', 15),
]

ADMINS = [
    dict(rut='5000000-1', first_name='Name 8', first_last_name='Surname 8', email='c@clinic.cl',
         phone=948267513, birth_date='2004-04-04', gender='Male'),
]


def _date(value: str) -> datetime.date:
    return datetime.date.fromisoformat(value)


class Command(BaseCommand):
    help = "Load the clinic's reference data plus demo patients, medics and an admin (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--password', default='password123', help='Password for every demo account')
        parser.add_argument('--reference-only', action='store_true', help='Skip the demo accounts')

    @transaction.atomic
    def handle(self, *args, **opts):
        Clinic.objects.get_or_create(pk=Clinic.SINGLETON_ID, defaults=dict(
            name='Clinic', email='contact@clinic.cl', phone=912345678, address='Street 101',
            opening_time=datetime.time(7, 0), closing_time=datetime.time(23, 0),
        ))
        for name in BLOOD_TYPES:
            BloodType.objects.get_or_create(name=name)
        for name in INSURANCE_TYPES:
            InsuranceType.objects.get_or_create(name=name)
        for name in SPECIALTIES:
            Specialty.objects.get_or_create(name=name)
        self.stdout.write(self.style.SUCCESS('ok: reference data'))
        if opts['reference_only']:
            return

        password = opts['password']
        for data in PATIENTS:
            data = dict(data, birth_date=_date(data['birth_date']))
            data['blood_type'] = BloodType.objects.get(name=data['blood_type'])
            data['insurance_type'] = InsuranceType.objects.get(name=data['insurance_type'])
            patient, created = Patient.objects.get_or_create(rut=data.pop('rut'), defaults=data)
            if created:
                patient.set_password(password)
                patient.save(update_fields=['password'])
                MedicalRecord.objects.get_or_create(patient=patient)
            self.stdout.write(self.style.SUCCESS(f'ok: patient {patient.rut}'))

        for data, specialty, first_hour in MEDICS:
            employee = self._employee(data, Employee.MEDIC, password)
            if not Medic.objects.filter(pk=employee.rut).exists():
                schedule = Schedule.objects.create()
                Medic.objects.create(
                    employee=employee, specialty=Specialty.objects.get(name=specialty), schedule=schedule,
                )
                # two half-hour slots a day, one hour later each day
                for offset, day in enumerate(DAYS):
                    hour = first_hour + offset
                    TimeSlot.objects.create(schedule=schedule, day=day,
                                            start=datetime.time(hour, 0), end=datetime.time(hour, 30))
                    TimeSlot.objects.create(schedule=schedule, day=day,
                                            start=datetime.time(hour, 30), end=datetime.time(hour + 1, 0))
            self.stdout.write(self.style.SUCCESS(f'ok: medic {employee.rut}'))

        for data in ADMINS:
            employee = self._employee(data, Employee.ADMIN_STAFF, password)
            self.stdout.write(self.style.SUCCESS(f'ok: admin {employee.rut}'))
        self.stdout.write(self.style.SUCCESS('Clinic seeded.'))

    def _employee(self, data, kind, password):
        data = dict(data, birth_date=_date(data['birth_date']), type=kind)
        employee, created = Employee.objects.get_or_create(rut=data.pop('rut'), defaults=data)
        if created:
            employee.set_password(password)
            employee.save(update_fields=['password'])
        return employee
