from django.db import DatabaseError, connections
from django.http import JsonResponse
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response


def healthz(request):
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return JsonResponse({'ok': True, 'db': bool(row and row[0] == 1)})
    except DatabaseError as e:
        return JsonResponse({'ok': False, 'error': str(e)}, status=500)


@api_view(['GET'])
@permission_classes([AllowAny])
def ping(request):
    return Response({'ok': True, 'message': 'pong'})
