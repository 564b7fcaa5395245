import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class WardError(APIException):
    """Base class for failures raised by the ward services."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request failed'
    default_code = 'ward_error'

    def __init__(self, detail=None, code=None):
        super().__init__(detail, code)
        self.message = str(self.detail)


class NotFound(WardError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'


class Conflict(WardError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict'
    default_code = 'conflict'


class InvalidState(Conflict):
    default_detail = 'Invalid state'
    default_code = 'invalid_state'


class Inconsistency(WardError):
    """A multi-step write completed only partially."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Records left inconsistent'
    default_code = 'inconsistency'


class ConfigurationError(WardError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Server misconfigured'
    default_code = 'configuration_error'


class UnsupportedMediaType(WardError):
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    default_detail = 'Unsupported media type'
    default_code = 'unsupported_media_type'


class PayloadTooLarge(WardError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    default_detail = 'Payload too large'
    default_code = 'payload_too_large'


def _first_message(data):
    if isinstance(data, dict):
        if 'detail' in data:
            return _first_message(data['detail'])
        for key, value in data.items():
            msg = _first_message(value)
            return f"{key}: {msg}" if key != 'non_field_errors' else msg
        return ''
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else ''
    return str(data)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view'))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': 'Server error'}}, status=500)
    if isinstance(exc, WardError):
        code = exc.get_codes()
        if isinstance(exc, (Inconsistency, ConfigurationError)):
            logger.error('%s: %s', code, exc.message)
        return Response({'ok': False, 'error': {'code': code, 'message': exc.message}}, status=resp.status_code)
    if isinstance(exc, ValidationError):
        return Response(
            {'ok': False, 'error': {'code': 'validation_error', 'message': _first_message(resp.data), 'fields': resp.data}},
            status=resp.status_code,
        )
    # normalize response
    detail = resp.data.get('detail') if isinstance(resp.data, dict) else None
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': str(detail or resp.data)}}, status=resp.status_code)
