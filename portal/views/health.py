import logging

from django.db import DatabaseError, connections
from django.http import JsonResponse

from ..exceptions import GENERIC_ERROR

logger = logging.getLogger(__name__)


def healthz(request):
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return JsonResponse({'ok': True, 'db': bool(row and row[0] == 1)})
    except DatabaseError:
        logger.exception("health check failed")
        return JsonResponse({'ok': False, 'error': GENERIC_ERROR}, status=500)
