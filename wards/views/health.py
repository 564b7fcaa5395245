"""
Readiness probe.

``staffRole`` tells whether the role staff accounts are created under
exists; without it staff creation answers with a configuration error.
"""
import logging

from django.conf import settings
from django.db import DatabaseError
from django.http import JsonResponse

from wards.gateway import get_gateway

logger = logging.getLogger(__name__)


def healthz(request):
    try:
        role = get_gateway().find_one('roles', {'name__iexact': settings.WARDS_STAFF_ROLE})
    except DatabaseError as exc:
        logger.error('health check failed: %s', exc)
        return JsonResponse({'ok': False, 'db': False, 'error': str(exc)}, status=503)
    return JsonResponse({'ok': True, 'db': True, 'staffRole': role is not None})
