import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

GENERIC_ERROR = 'Error interno del servidor'


def server_error_response() -> Response:
    return Response({'ok': False, 'error': {'code': 'server_error', 'message': GENERIC_ERROR}}, status=500)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        # never leak backing-store detail to the client
        view = context.get('view')
        logger.exception("unhandled error in %s", getattr(view, '__class__', type(view)).__name__, exc_info=exc)
        return server_error_response()
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': detail}}, status=resp.status_code)
