import logging
import time

from django.http import JsonResponse

from scheduling.exceptions import error_body

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Log API calls and refuse non-JSON request bodies."""
    API_PREFIX = '/api/'
    BODY_METHODS = ('POST', 'PATCH', 'PUT')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or ''
        if not path.startswith(self.API_PREFIX):
            return self.get_response(request)

        started = time.monotonic()
        logger.info('%s %s', request.method, path)
        if request.method in self.BODY_METHODS and request.body:
            content_type = (request.content_type or '').lower()
            if content_type != 'application/json':
                response = JsonResponse(
                    error_body(400, "Content-Type header must be 'application/json'."), status=400
                )
                logger.info('%s %s -> %s (unsupported content type %r)', request.method, path, 400, content_type)
                return response
        response = self.get_response(request)
        logger.info(
            '%s %s -> %s (%.1f ms)',
            request.method, path, response.status_code, (time.monotonic() - started) * 1000,
        )
        return response
