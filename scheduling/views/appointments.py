from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from scheduling.models import Appointment
from scheduling.permissions import ADMIN, SessionGate
from scheduling.services.appointments import upcoming

from .common import appointment_data


@api_view(['GET'])
@permission_classes([SessionGate.route(GET=ADMIN)])
def list_appointments(request):
    """Upcoming appointments across every medic (admin only)."""
    qs = upcoming(Appointment.objects.select_related(
        'patient', 'time_slot__schedule__medic__employee', 'time_slot__schedule__medic__specialty',
    ))
    return Response([appointment_data(a, with_patient=True, with_medic=True) for a in qs])
