"""
Clinic information and the lookup tables (blood types, insurance types,
specialties).  Reads are public; only admins may edit the clinic.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from scheduling.exceptions import error_response
from scheduling.models import BloodType, Clinic, InsuranceType, Specialty
from scheduling.permissions import ADMIN, SessionGate
from scheduling.serializers.base import first_violation
from scheduling.serializers.scheduling import ClinicSerializer
from scheduling.services.people import apply_changes
from scheduling.services.results import Violation

from .common import hhmm, updated

CLINIC_MISSING = Violation.not_found('Clinic information is not available.')


def _clinic_data(clinic: Clinic) -> dict:
    return {
        'name': clinic.name,
        'email': clinic.email,
        'phone': clinic.phone,
        'address': clinic.address,
        'openingTime': hhmm(clinic.opening_time),
        'closingTime': hhmm(clinic.closing_time),
    }


@api_view(['GET', 'PATCH'])
@permission_classes([SessionGate.route(PATCH=ADMIN)])
def clinic(request):
    obj = Clinic.current()
    if obj is None:
        return error_response(CLINIC_MISSING)
    if request.method == 'GET':
        return Response(_clinic_data(obj))

    s = ClinicSerializer(obj, data=request.data, partial=True)
    violation = first_violation(s)
    if violation:
        return error_response(violation)
    changes = s.validated_data
    opening = changes.get('opening_time', obj.opening_time)
    closing = changes.get('closing_time', obj.closing_time)
    if opening >= closing:
        return error_response(Violation.invalid('Invalid time range.'))
    changed = apply_changes(obj, changes)
    if changed:
        obj.save(update_fields=changed)
    return updated(bool(changed))


def _named(model):
    return [{'id': obj.id, 'name': obj.name} for obj in model.objects.order_by('id')]


@api_view(['GET'])
def blood_types(request):
    return Response(_named(BloodType))


@api_view(['GET'])
def insurance_types(request):
    return Response(_named(InsuranceType))


@api_view(['GET'])
def specialties(request):
    return Response(_named(Specialty))
