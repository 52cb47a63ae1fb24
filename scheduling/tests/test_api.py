"""
End-to-end tests over the seeded demo clinic.

The fixture data comes from ``manage.py seed_clinic``: two patients,
two medics with a week of half-hour slots each and one admin, all with
the same password.

To run the tests:

```
pytest -q scheduling/tests
```
"""
import datetime

from django.core.cache import cache
from django.core.management import call_command
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from ..models import Appointment, Clinic, Employee, Patient, Specialty, TimeSlot
from ..services.sessions import SessionRegistry, set_registry

DEMO_PASSWORD = 'demo-password'


class ClinicAPITests(APITestCase):
    def setUp(self) -> None:
        set_registry(SessionRegistry())
        cache.clear()
        call_command('seed_clinic', '--password', DEMO_PASSWORD, verbosity=0)
        self.patient_rut = '1000000-9'
        self.medic_rut = '3000000-5'
        self.other_medic_rut = '4000000-3'
        self.admin_rut = '5000000-1'

    def login(self, kind: str, rut: str) -> str:
        resp = self.client.post(reverse(f'{kind}-session', args=[rut]), {'password': DEMO_PASSWORD}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        token = resp.data['token']
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        return token

    def test_seed_is_idempotent(self) -> None:
        call_command('seed_clinic', '--password', DEMO_PASSWORD, verbosity=0)
        self.assertEqual(Patient.objects.count(), 2)
        self.assertEqual(Employee.objects.count(), 3)
        self.assertEqual(Specialty.objects.count(), 16)
        self.assertEqual(TimeSlot.objects.count(), 28)
        self.assertIsNotNone(Clinic.current())

    def test_ping_and_health(self) -> None:
        self.assertEqual(self.client.get(reverse('ping')).data, {'ok': True, 'message': 'pong'})
        resp = self.client.get('/healthz')
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()['ok'])

    def test_clinic_and_lookup_tables(self) -> None:
        resp = self.client.get(reverse('clinic'))
        self.assertEqual(resp.data['openingTime'], '07:00')
        self.assertEqual(resp.data['closingTime'], '23:00')
        names = [b['name'] for b in self.client.get(reverse('blood-types')).data]
        self.assertEqual(names, ['A', 'B', 'AB', 'O'])
        self.assertEqual(len(self.client.get(reverse('insurance-types')).data), 2)
        self.assertEqual(len(self.client.get(reverse('specialties')).data), 16)

    def test_clinic_hours_must_stay_ordered(self) -> None:
        self.login('admin', self.admin_rut)
        resp = self.client.patch(reverse('clinic'), {'closingTime': '06:00'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        resp = self.client.patch(reverse('clinic'), {'closingTime': '22:00'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)

    def test_clinic_schedule_filters(self) -> None:
        resp = self.client.get(reverse('schedule'))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual({m['rut'] for m in resp.data}, {self.medic_rut, self.other_medic_rut})
        self.assertTrue(all(len(m['slots']) == 14 for m in resp.data))

        allergy = Specialty.objects.get(name='Allergy and Immunology')
        resp = self.client.get(reverse('schedule'), {'specialties': f'{allergy.pk}'})
        self.assertEqual([m['rut'] for m in resp.data], [self.medic_rut])

        resp = self.client.get(f"{reverse('schedule')}?medics={self.other_medic_rut}&medics={self.medic_rut}")
        self.assertEqual(len(resp.data), 2)

        resp = self.client.get(reverse('schedule'), {'medics': 'nope'})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['error']['message'], 'Medics query contains invalid rut.')
        resp = self.client.get(reverse('schedule'), {'specialties': '1,x'})
        self.assertEqual(resp.data['error']['message'], 'Specialties query contains invalid id.')

    def test_schedule_hides_inactive_slots_and_shows_booked_dates(self) -> None:
        slots = TimeSlot.objects.filter(schedule__medic__employee_id=self.medic_rut, day='mo').order_by('start')
        first, second = list(slots)
        second.active = False
        second.save()
        today = timezone.localdate()
        monday = today + datetime.timedelta(days=(0 - today.weekday()) % 7 or 7)
        Appointment.objects.create(patient_id=self.patient_rut, time_slot=first, date=monday, description='x')

        resp = self.client.get(reverse('schedule'), {'medics': self.medic_rut})
        slots = resp.data[0]['slots']
        self.assertEqual(len(slots), 13)
        booked = next(s for s in slots if s['id'] == first.id)
        self.assertEqual(booked['appointmentDates'], [monday.isoformat()])

    def test_medic_directory(self) -> None:
        resp = self.client.get(reverse('medics'))
        self.assertEqual(len(resp.data), 2)
        internal = Specialty.objects.get(name='Internal Medicine')
        resp = self.client.get(reverse('medics'), {'specialty': internal.pk})
        self.assertEqual([m['rut'] for m in resp.data], [self.other_medic_rut])
        resp = self.client.get(reverse('medic', args=['9999999-3']))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_patient_books_and_lists(self) -> None:
        self.login('patient', self.patient_rut)
        slot = TimeSlot.objects.get(schedule__medic__employee_id=self.other_medic_rut, day='we', start='17:00')
        today = timezone.localdate()
        wednesday = today + datetime.timedelta(days=(2 - today.weekday()) % 7 or 7)
        resp = self.client.post(
            reverse('patient-appointments', args=[self.patient_rut]),
            {'date': wednesday.isoformat(), 'timeSlotId': slot.pk, 'description': 'Headache'},
            format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        resp = self.client.get(reverse('patient-appointments', args=[self.patient_rut]))
        self.assertEqual(len(resp.data), 1)
        self.assertEqual(resp.data[0]['medicRut'], self.other_medic_rut)
        self.assertEqual(resp.data[0]['start'], '17:00')

    def test_admin_listings(self) -> None:
        self.login('medic', self.medic_rut)
        resp = self.client.get(reverse('admins'))
        self.assertEqual([a['rut'] for a in resp.data], [self.admin_rut])
        resp = self.client.get(reverse('appointments'))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

        self.login('admin', self.admin_rut)
        resp = self.client.get(reverse('appointments'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, [])

    def test_new_login_replaces_previous_token(self) -> None:
        first = self.login('patient', self.patient_rut)
        second = self.login('patient', self.patient_rut)
        self.assertNotEqual(first, second)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {first}')
        resp = self.client.get(reverse('patient', args=[self.patient_rut]))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {second}')
        resp = self.client.get(reverse('patient', args=[self.patient_rut]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['insuranceType'], 'Fonasa')

    def test_errors_share_one_body(self) -> None:
        resp = self.client.get(reverse('patient', args=['not-a-rut']))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(resp.data['ok'], False)
