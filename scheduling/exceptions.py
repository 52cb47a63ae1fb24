"""
Unified API error responses.

All failures share one body: ``{"ok": false, "error": {"code", "message"}}``.
Expected failures reach the client through :func:`error_response`;
``api_exception_handler`` is DRF's ``EXCEPTION_HANDLER`` and covers the
rest, mapping integrity errors (the store-level conflict backstop) to
409 and anything unexpected to a logged 500.
"""
from __future__ import annotations

import logging

from django.db import IntegrityError
from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from scheduling.services.results import Violation

logger = logging.getLogger(__name__)

ERROR_CODES = {
    400: 'invalid',
    401: 'unauthorized',
    404: 'not_found',
    405: 'method_not_allowed',
    409: 'conflict',
    415: 'unsupported_media_type',
    429: 'throttled',
    500: 'server_error',
}

CONFLICTING_WRITE = 'Request conflicts with the current state of the resource.'
SERVER_ERROR = 'Internal server error.'


def error_body(status_code: int, message) -> dict:
    return {'ok': False, 'error': {'code': ERROR_CODES.get(status_code, 'api_error'), 'message': message}}


def error_response(violation: Violation) -> Response:
    return Response(error_body(violation.status, violation.message), status=violation.status)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        if isinstance(exc, (IntegrityError, ProtectedError)):
            logger.warning('Conflicting write in %s: %s', type(view).__name__, exc)
            return Response(error_body(409, CONFLICTING_WRITE), status=status.HTTP_409_CONFLICT)
        request = context.get('request')
        logger.exception(
            'Unhandled error on %s %s',
            getattr(request, 'method', '?'),
            getattr(request, 'path', '?'),
            exc_info=exc,
        )
        return Response(error_body(500, SERVER_ERROR), status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    # normalize response
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    resp.data = error_body(resp.status_code, str(detail) if not isinstance(detail, (dict, list)) else detail)
    return resp
