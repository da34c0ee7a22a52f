import logging

from django.core.exceptions import ObjectDoesNotExist
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from clinic.services.payments import PaymentGatewayError

logger = logging.getLogger(__name__)

_SERVICE_ERRORS = (
    (PermissionError, 403, 'forbidden'),
    (ObjectDoesNotExist, 404, 'not_found'),
    (PaymentGatewayError, 502, 'gateway_error'),
    (ValueError, 400, 'invalid'),
)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        for exc_type, status_code, code in _SERVICE_ERRORS:
            if isinstance(exc, exc_type):
                return Response({'ok': False, 'error': {'code': code, 'message': str(exc)}}, status=status_code)
        logger.exception("unhandled error in %s", context.get('view').__class__.__name__)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}}, status=500)
    # normalize response
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': detail}}, status=resp.status_code)
