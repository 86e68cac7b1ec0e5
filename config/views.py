from django.conf import settings
from django.db import connection
from django.db.utils import OperationalError
from django.http import JsonResponse

from config.logging import get_logger

logger = get_logger(__name__)


def health_check(request):
    """Liveness probe: a database round-trip plus the settlement currency."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except OperationalError as e:
        logger.error("Health check failed: {}", e)
        return JsonResponse({'status': 'unhealthy', 'database': 'unavailable'}, status=503)
    return JsonResponse({
        'status': 'ok',
        'database': 'ok',
        'currency': settings.SETTLEMENT_CURRENCY,
    })


# Same ``{"error": ...}`` shape the API views return
def not_found(request, exception):
    return JsonResponse({'error': 'Not found'}, status=404)


def server_error(request):
    logger.error("Unhandled error on {} {}", request.method, request.path)
    return JsonResponse({'error': 'Internal server error'}, status=500)
