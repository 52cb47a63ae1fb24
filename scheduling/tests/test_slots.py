import datetime
import itertools

import pytest
from django.urls import reverse

from scheduling.models import Appointment, TimeSlot
from scheduling.services.slots import (
    SLOT_BOOKED,
    SLOT_OVERLAPS,
    SLOT_UPCOMING,
    delete_slot,
    find_overlapping_slot,
    slots_overlap,
    update_slot,
)

from .conftest import make_slot, next_weekday

pytestmark = pytest.mark.django_db


def t(h, m=0):
    return datetime.time(h, m)


@pytest.mark.parametrize('a,b,expected', [
    ((t(8), t(9)), (t(8), t(8, 30)), True),          # same start
    ((t(8), t(9)), (t(8, 30), t(9)), True),          # same end
    ((t(8), t(9)), (t(8, 30), t(9, 30)), True),      # starts inside
    ((t(8), t(9)), (t(7, 30), t(8, 30)), True),      # ends inside
    ((t(8), t(9)), (t(7), t(10)), True),             # contains
    ((t(8), t(9)), (t(8, 15), t(8, 45)), True),      # contained
    ((t(8), t(9)), (t(8), t(9)), True),              # identical
    ((t(8), t(9)), (t(9), t(10)), False),            # touching after
    ((t(8), t(9)), (t(7), t(8)), False),             # touching before
    ((t(8), t(9)), (t(10), t(11)), False),
])
def test_slots_overlap(a, b, expected):
    assert slots_overlap(*a, *b) is expected


def test_overlap_is_symmetric():
    times = [t(h, m) for h in (8, 9, 10) for m in (0, 30)]
    ranges = [(s, e) for s, e in itertools.combinations(times, 2)]
    for a, b in itertools.product(ranges, repeat=2):
        assert slots_overlap(*a, *b) == slots_overlap(*b, *a)


def test_query_agrees_with_predicate(medic):
    stored = make_slot(medic, 'mo', (8, 0), (9, 0))
    times = [t(h, m) for h in (7, 8, 9) for m in (0, 30)] + [t(10)]
    for start, end in itertools.combinations(times, 2):
        found = find_overlapping_slot(medic.schedule_id, 'mo', start, end)
        assert (found == stored) is slots_overlap(stored.start, stored.end, start, end)


def test_inactive_and_other_day_slots_are_ignored(medic):
    make_slot(medic, 'mo', (8, 0), (9, 0), active=False)
    make_slot(medic, 'tu', (8, 0), (9, 0))
    assert find_overlapping_slot(medic.schedule_id, 'mo', t(8), t(9)) is None


def test_create_slot_overlap_scenario(medic, medic_client):
    url = reverse('medic-slots', args=[medic.rut])
    r = medic_client.post(url, {'day': 'mo', 'start': '08:00', 'end': '08:30'}, format='json')
    assert r.status_code == 201
    assert r.data['active'] is True

    r = medic_client.post(url, {'day': 'mo', 'start': '08:15', 'end': '08:45'}, format='json')
    assert r.status_code == 409
    assert r.data['error']['message'] == SLOT_OVERLAPS

    r = medic_client.post(url, {'day': 'mo', 'start': '08:30', 'end': '09:00'}, format='json')
    assert r.status_code == 201
    assert TimeSlot.objects.filter(schedule=medic.schedule).count() == 2


def test_create_slot_rejects_bad_range(medic, medic_client):
    url = reverse('medic-slots', args=[medic.rut])
    r = medic_client.post(url, {'day': 'mo', 'start': '09:00', 'end': '08:00'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Invalid time range.'
    r = medic_client.post(url, {'day': 'xx', 'start': '08:00', 'end': '09:00'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Invalid day.'


def test_update_slot_diff_and_overlap(medic):
    slot = make_slot(medic, 'mo', (8, 0), (8, 30))
    make_slot(medic, 'mo', (9, 0), (10, 0))
    assert update_slot(slot, {'start': t(8)}) is False
    assert update_slot(slot, {'end': t(9, 15)}).message == SLOT_OVERLAPS
    assert update_slot(slot, {'end': t(9)}) is True
    slot.refresh_from_db()
    assert slot.end == t(9)


def test_reactivation_rechecks_overlap(medic):
    slot = make_slot(medic, 'mo', (8, 0), (9, 0), active=False)
    make_slot(medic, 'mo', (8, 30), (9, 30))
    violation = update_slot(slot, {'active': True})
    assert violation.status == 409
    assert violation.message == SLOT_OVERLAPS


def test_booked_slot_cannot_be_reshaped_or_deleted(medic, patient):
    slot = make_slot(medic, 'mo', (8, 0), (9, 0))
    Appointment.objects.create(patient=patient, time_slot=slot, date=next_weekday('mo'), description='check')
    assert update_slot(slot, {'day': 'tu'}).message == SLOT_BOOKED
    assert delete_slot(slot).message == SLOT_BOOKED
    assert TimeSlot.objects.filter(pk=slot.pk).exists()


def test_deactivation_blocked_by_upcoming_appointment(medic, patient):
    slot = make_slot(medic, 'mo', (8, 0), (9, 0))
    Appointment.objects.create(patient=patient, time_slot=slot, date=next_weekday('mo'), description='check')
    assert update_slot(slot, {'active': False}).message == SLOT_UPCOMING


def test_deactivation_allowed_with_only_past_appointments(medic, patient):
    slot = make_slot(medic, 'mo', (8, 0), (9, 0))
    past = next_weekday('mo') - datetime.timedelta(days=14)
    Appointment.objects.create(patient=patient, time_slot=slot, date=past, description='old')
    assert update_slot(slot, {'active': False}) is True
    # still referenced, so deletion stays blocked
    assert delete_slot(slot).message == SLOT_BOOKED


def test_slot_detail_endpoints(medic, medic_client):
    slot = make_slot(medic, 'mo', (8, 0), (9, 0))
    url = reverse('medic-slot', args=[medic.rut, slot.pk])
    assert medic_client.patch(url, {'start': '08:00'}, format='json').status_code == 304
    assert medic_client.patch(url, {'active': False}, format='json').status_code == 204
    assert medic_client.delete(url).status_code == 204
    assert medic_client.delete(url).status_code == 404
    bad = reverse('medic-slot', args=[medic.rut, 'abc'])
    assert medic_client.delete(bad).status_code == 400


def test_medic_schedule_lists_all_slots(medic, medic_client, patient):
    active = make_slot(medic, 'mo', (8, 0), (9, 0))
    make_slot(medic, 'tu', (8, 0), (9, 0), active=False)
    Appointment.objects.create(patient=patient, time_slot=active, date=next_weekday('mo'), description='x')
    r = medic_client.get(reverse('medic-schedule', args=[medic.rut]))
    assert r.status_code == 200
    assert len(r.data) == 2
    booked = next(s for s in r.data if s['id'] == active.id)
    assert booked['appointments'][0]['patientRut'] == patient.rut
