"""
Login and logout for patients, medics and admins.

``POST /<kind>/<rut>/session`` checks the password and returns a new
bearer token; ``DELETE`` revokes the token the request was made with.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from scheduling.exceptions import error_response
from scheduling.permissions import ADMIN, MEDIC, PATIENT, SessionGate
from scheduling.services.people import get_admin, get_medic, get_patient, open_session
from scheduling.services.results import Violation
from scheduling.services.sessions import get_registry

from .common import INVALID_RUT, clean_rut

PASSWORD_REQUIRED = Violation.invalid('Request body must contain password.')


def _session(request, rut: str, lookup, label: str):
    if request.method == 'DELETE':
        get_registry().revoke(request.auth)
        return Response(status=status.HTTP_204_NO_CONTENT)

    rut = clean_rut(rut)
    if rut is None:
        return error_response(INVALID_RUT)
    password = request.data.get('password') if hasattr(request.data, 'get') else None
    if not password or not isinstance(password, str):
        return error_response(PASSWORD_REQUIRED)
    subject = lookup(rut)
    if subject is None:
        return error_response(Violation.not_found(f'{label} {rut} does not exist.'))
    result = open_session(subject, password)
    if isinstance(result, Violation):
        return error_response(result)
    return Response({'token': result}, status=status.HTTP_201_CREATED)


@api_view(['POST', 'DELETE'])
@permission_classes([SessionGate.route(DELETE=PATIENT, self_scope='rut')])
def patient_session(request, rut):
    return _session(request, rut, get_patient, 'Patient')


@api_view(['POST', 'DELETE'])
@permission_classes([SessionGate.route(DELETE=MEDIC, self_scope='rut')])
def medic_session(request, rut):
    return _session(request, rut, lambda r: getattr(get_medic(r), 'employee', None), 'Medic')


@api_view(['POST', 'DELETE'])
@permission_classes([SessionGate.route(DELETE=ADMIN, self_scope='rut')])
def admin_session(request, rut):
    return _session(request, rut, get_admin, 'Admin')


# ScopedRateThrottle reads throttle_scope from the view class
for _view in (patient_session, medic_session, admin_session):
    _view.cls.throttle_scope = 'session'
