from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from scheduling.exceptions import error_response
from scheduling.models import Employee
from scheduling.permissions import ADMIN, STAFF, SessionGate
from scheduling.serializers.base import first_violation
from scheduling.serializers.people import EmployeeSerializer
from scheduling.services.people import get_admin, update_person
from scheduling.services.results import Violation

from .common import INVALID_RUT, clean_rut, person_data, updated


@api_view(['GET'])
@permission_classes([SessionGate.route(GET=STAFF)])
def list_admins(request):
    qs = Employee.objects.filter(type=Employee.ADMIN_STAFF).order_by('first_last_name')
    return Response([person_data(e) for e in qs])


@api_view(['GET', 'PATCH'])
@permission_classes([SessionGate.route(GET=STAFF, PATCH=ADMIN)])
def admin_detail(request, rut):
    rut = clean_rut(rut)
    if rut is None:
        return error_response(INVALID_RUT)
    admin = get_admin(rut)
    if admin is None:
        return error_response(Violation.not_found(f'Admin {rut} does not exist.'))
    if request.method == 'GET':
        return Response(person_data(admin))

    s = EmployeeSerializer(admin, data=request.data, partial=True)
    violation = first_violation(s)
    if violation:
        return error_response(violation)
    return updated(update_person(admin, s.validated_data))
