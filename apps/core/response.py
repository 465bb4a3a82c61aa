"""
Response helpers for the API envelope.

    Success:  {"success": true,  "data": ..., "message": "..."}
    Error:    {"success": false, "error": {"code": 400, "message": "...", "details": {...}}}

Paginated lists (``StandardResultsPagination``) carry ``data`` and
``pagination``. File downloads bypass the envelope.
"""

from django.http import HttpResponse
from rest_framework import status
from rest_framework.response import Response


def success_response(data=None, message='OK', http_status=status.HTTP_200_OK, **extra):
    """Extra keyword args become top-level keys (``summary``, ``poll_interval_seconds``)."""
    payload = {'success': True, 'data': data, 'message': message}
    payload.update(extra)
    return Response(payload, status=http_status)


def created_response(data=None, message='Created successfully.'):
    return success_response(data=data, message=message, http_status=status.HTTP_201_CREATED)


def failure_response(message, details=None, http_status=status.HTTP_200_OK):
    """
    Best-effort operations (form reminders) report failure in the body
    while keeping a non-5xx status.
    """
    return Response(
        {
            'success': False,
            'error': {
                'code': http_status,
                'message': message,
                'details': details or {},
            },
        },
        status=http_status,
    )


def attachment_response(content, filename, content_type='application/octet-stream'):
    response = HttpResponse(content, content_type=content_type)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response
