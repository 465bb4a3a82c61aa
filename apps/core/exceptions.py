"""
Service exceptions and the DRF exception handler.

Every error leaves the API as
``{"success": false, "error": {"code", "message", "details"}}``.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated, PermissionDenied, Throttled
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .encryption import EncryptionError

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security.audit")


class APIException(Exception):
    """
    Base for errors raised from the service layer. ``code`` ends up in
    ``details.error_type`` so clients can branch without parsing messages.
    """

    def __init__(self, message, code=None, status_code=status.HTTP_400_BAD_REQUEST, details=None):
        self.message = message
        self.code = code or 'error'
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationException(APIException):

    def __init__(self, message, field=None, details=None):
        super().__init__(message, code='validation_error', status_code=status.HTTP_400_BAD_REQUEST, details=details)
        self.field = field


class ResourceNotFoundException(APIException):

    def __init__(self, resource_type, resource_id=None):
        message = f"{resource_type} not found"
        if resource_id:
            message = f"{resource_type} with ID {resource_id} not found"
        super().__init__(message, code='not_found', status_code=status.HTTP_404_NOT_FOUND)


class ConflictException(APIException):
    """A unique value (NPI, email, username) is already taken."""

    def __init__(self, message, field=None):
        super().__init__(message, code='conflict', status_code=status.HTTP_409_CONFLICT)
        self.field = field


def _envelope(code, message, details):
    return {
        'success': False,
        'error': {
            'code': code,
            'message': message,
            'details': details,
        }
    }


def custom_exception_handler(exc, context):
    if isinstance(exc, APIException):
        details = dict(exc.details or {})
        details.setdefault('error_type', exc.code)
        if getattr(exc, 'field', None):
            details.setdefault(exc.field, [exc.message])
        if exc.status_code >= 500:
            logger.error("service_error type=%s message=%s", exc.code, exc.message)
        return Response(_envelope(exc.status_code, exc.message, details), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        _log_security_event(exc, context, response.status_code)
        response.data = _envelope(
            response.status_code,
            get_error_message(response.data),
            response.data if isinstance(response.data, dict) else {'detail': response.data},
        )
        return response

    if isinstance(exc, DjangoValidationError):
        logger.warning("validation_error error=%s", exc)
        if hasattr(exc, 'message_dict'):
            details = exc.message_dict
        else:
            details = {'validation_errors': exc.messages}
        return Response(_envelope(400, 'Validation Error', details), status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, IntegrityError):
        logger.warning("integrity_error error=%s", exc)
        return Response(
            _envelope(409, 'This record conflicts with existing data.', {'detail': 'A unique value is already in use.'}),
            status=status.HTTP_409_CONFLICT,
        )

    if isinstance(exc, Http404):
        return Response(_envelope(404, 'Not Found', {'detail': str(exc)}), status=status.HTTP_404_NOT_FOUND)

    # Never echo cipher details back to the client
    if isinstance(exc, EncryptionError):
        security_logger.error("field_decryption_failed path=%s", getattr(context.get('request'), 'path', None))
        return Response(
            _envelope(500, 'A protected value could not be read.', {'error_type': 'encryption_error'}),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    logger.exception("unexpected_error error=%s", exc)
    return Response(
        _envelope(500, 'Internal Server Error', {'detail': 'An unexpected error occurred.'}),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _log_security_event(exc, context, status_code):
    if status_code not in (401, 403, 429):
        return
    request = context.get("request")
    if request is None:
        return

    user = getattr(request, "user", None)
    user_id = user.pk if user is not None and user.is_authenticated else None
    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        event_type = "auth_failed"
    elif isinstance(exc, PermissionDenied):
        event_type = "permission_denied"
    elif isinstance(exc, Throttled):
        event_type = "throttled"
    else:
        event_type = "security_event"

    security_logger.warning(
        "api_security_event type=%s status=%s method=%s path=%s user_id=%s ip=%s",
        event_type, status_code, request.method, request.path, user_id, request.META.get("REMOTE_ADDR"),
    )


def get_error_message(data):
    """First human-readable message in a DRF error payload."""
    if isinstance(data, dict):
        if 'detail' in data:
            return str(data['detail'])
        if 'non_field_errors' in data:
            return str(data['non_field_errors'][0])
        for key, value in data.items():
            if isinstance(value, list) and value:
                return f"{key}: {value[0]}"
            if isinstance(value, str):
                return f"{key}: {value}"
    elif isinstance(data, list) and data:
        return str(data[0])
    return str(data)
