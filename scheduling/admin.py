"""
Django admin registrations for the scheduling models.

Lets superusers inspect clinic data through ``/admin/``.  Session tokens
and password hashes are shown read-only.
"""

from django.contrib import admin

from .models import (
    Appointment,
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

admin.site.register(BloodType)
admin.site.register(InsuranceType)
admin.site.register(Specialty)


@admin.register(Clinic)
class ClinicAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'phone', 'opening_time', 'closing_time')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('rut', 'first_name', 'first_last_name', 'email', 'insurance_type')
    list_filter = ('insurance_type', 'blood_type')
    search_fields = ('rut', 'first_name', 'first_last_name', 'email')
    readonly_fields = ('password', 'session_token')


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    list_display = ('patient',)
    search_fields = ('patient__rut',)


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ('rut', 'first_name', 'first_last_name', 'email', 'type')
    list_filter = ('type',)
    search_fields = ('rut', 'first_name', 'first_last_name', 'email')
    readonly_fields = ('password', 'session_token')


@admin.register(Medic)
class MedicAdmin(admin.ModelAdmin):
    list_display = ('employee', 'specialty', 'schedule')
    list_filter = ('specialty',)


class TimeSlotInline(admin.TabularInline):
    model = TimeSlot
    extra = 0


@admin.register(Schedule)
class ScheduleAdmin(admin.ModelAdmin):
    list_display = ('id',)
    inlines = [TimeSlotInline]


@admin.register(TimeSlot)
class TimeSlotAdmin(admin.ModelAdmin):
    list_display = ('id', 'schedule', 'day', 'start', 'end', 'active')
    list_filter = ('day', 'active')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'time_slot', 'date', 'confirmed')
    list_filter = ('confirmed', 'date')
    search_fields = ('patient__rut',)
