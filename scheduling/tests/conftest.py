import datetime

import pytest
from django.core.cache import cache
from django.core.management import call_command
from django.utils import timezone
from rest_framework.test import APIClient

from scheduling.models import (
    BloodType,
    Employee,
    InsuranceType,
    MedicalRecord,
    Medic,
    Patient,
    Role,
    Schedule,
    Specialty,
    TimeSlot,
)
from scheduling.services.appointments import DAY_CODES
from scheduling.services.sessions import SessionRegistry, get_registry, set_registry

PASSWORD = 'P@ssw0rd1'

# valid ruts (mod-11 check digit)
PATIENT_RUT = '1000000-9'
OTHER_PATIENT_RUT = '2000000-7'
MEDIC_RUT = '3000000-5'
OTHER_MEDIC_RUT = '4000000-3'
ADMIN_RUT = '5000000-1'


@pytest.fixture(autouse=True)
def fast_settings(settings):
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    settings.NOTIFICATIONS_ASYNC = False
    settings.EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    return settings


@pytest.fixture(autouse=True)
def fresh_registry():
    set_registry(SessionRegistry())
    cache.clear()
    yield
    set_registry(None)


@pytest.fixture
def reference_data(db):
    call_command('seed_clinic', '--reference-only', verbosity=0)


def make_patient(rut=PATIENT_RUT, email='p1@mail.com', phone=911111111, **extra):
    data = dict(
        first_name='Ana', first_last_name='Rojas', email=email, phone=phone,
        birth_date=datetime.date(1990, 5, 1), gender='Female', weight=60, height=165, rhesus_factor='+',
        blood_type=BloodType.objects.get(name='A'), insurance_type=InsuranceType.objects.get(name='Fonasa'),
    )
    data.update(extra)
    patient = Patient(rut=rut, **data)
    patient.set_password(PASSWORD)
    patient.save(force_insert=True)
    MedicalRecord.objects.create(patient=patient)
    return patient


def make_employee(rut, kind, email, phone):
    employee = Employee(
        rut=rut, first_name='Luis', first_last_name='Soto', email=email, phone=phone,
        birth_date=datetime.date(1980, 1, 1), gender='Male', type=kind,
    )
    employee.set_password(PASSWORD)
    employee.save(force_insert=True)
    return employee


def make_medic(rut=MEDIC_RUT, email='m1@clinic.cl', phone=933333333, specialty='Dermatology'):
    employee = make_employee(rut, Employee.MEDIC, email, phone)
    return Medic.objects.create(
        employee=employee, specialty=Specialty.objects.get(name=specialty), schedule=Schedule.objects.create(),
    )


def make_slot(medic, day, start, end, active=True):
    return TimeSlot.objects.create(
        schedule=medic.schedule, day=day, start=datetime.time(*start), end=datetime.time(*end), active=active,
    )


def next_weekday(day: str, after: datetime.date = None) -> datetime.date:
    """First date strictly after ``after`` (default today) falling on ``day``."""
    after = after or timezone.localdate()
    delta = (DAY_CODES.index(day) - after.weekday()) % 7 or 7
    return after + datetime.timedelta(days=delta)


@pytest.fixture
def patient(reference_data):
    return make_patient()


@pytest.fixture
def other_patient(reference_data):
    return make_patient(OTHER_PATIENT_RUT, email='p2@mail.com', phone=922222222)


@pytest.fixture
def medic(reference_data):
    return make_medic()


@pytest.fixture
def other_medic(reference_data):
    return make_medic(OTHER_MEDIC_RUT, email='m2@clinic.cl', phone=944444444, specialty='Neurology')


@pytest.fixture
def admin(reference_data):
    return make_employee(ADMIN_RUT, Employee.ADMIN_STAFF, 'admin@clinic.cl', 955555555)


def client_for(subject_id=None, role=None):
    client = APIClient()
    if subject_id is not None:
        token = get_registry().issue(subject_id, role)
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    return client


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def patient_client(patient):
    return client_for(patient.rut, Role.PATIENT)


@pytest.fixture
def medic_client(medic):
    return client_for(medic.rut, Role.MEDIC)


@pytest.fixture
def admin_client(admin):
    return client_for(admin.rut, Role.ADMIN)
