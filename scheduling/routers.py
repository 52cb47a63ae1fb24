"""
URL table for the v1 API (mounted under ``/api/v1/``).

Each view carries its own access rules (``SessionGate.route``): the
role set per HTTP method and, for self-scoped routes, the URL kwarg
naming the subject.  Path ids are taken as strings so malformed ids get
a 400 from the view instead of a 404 from the resolver.
"""
from django.urls import path

from .views import admins, appointments, catalog, health, medics, patients, schedule, sessions

urlpatterns = [
    path('ping', health.ping, name='ping'),
    # Clinic & lookup tables
    path('clinic', catalog.clinic, name='clinic'),
    path('blood-types', catalog.blood_types, name='blood-types'),
    path('insurance-types', catalog.insurance_types, name='insurance-types'),
    path('specialties', catalog.specialties, name='specialties'),
    path('schedule', schedule.clinic_schedule, name='schedule'),
    path('appointments', appointments.list_appointments, name='appointments'),
    # Patients
    path('patients/<str:rut>', patients.patient_resource, name='patient'),
    path('patients/<str:rut>/appointments', patients.patient_appointments, name='patient-appointments'),
    path('patients/<str:rut>/appointments/<str:appointment_id>', patients.patient_appointment_detail,
         name='patient-appointment'),
    path('patients/<str:rut>/session', sessions.patient_session, name='patient-session'),
    # Medics
    path('medics', medics.list_medics, name='medics'),
    path('medics/<str:rut>', medics.medic_detail, name='medic'),
    path('medics/<str:rut>/appointments', medics.medic_appointments, name='medic-appointments'),
    path('medics/<str:rut>/appointments/<str:appointment_id>', medics.medic_appointment_detail,
         name='medic-appointment'),
    path('medics/<str:rut>/schedule', medics.medic_schedule, name='medic-schedule'),
    path('medics/<str:rut>/schedule/slots', medics.medic_slots, name='medic-slots'),
    path('medics/<str:rut>/schedule/slots/<str:slot_id>', medics.medic_slot_detail, name='medic-slot'),
    path('medics/<str:rut>/session', sessions.medic_session, name='medic-session'),
    # Admins
    path('admins', admins.list_admins, name='admins'),
    path('admins/<str:rut>', admins.admin_detail, name='admin'),
    path('admins/<str:rut>/session', sessions.admin_session, name='admin-session'),
]
