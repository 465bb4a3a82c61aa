"""
Request middleware: correlation IDs and security headers
"""

import re
import secrets

from .logging import set_correlation_id

_SAFE_REQUEST_ID = re.compile(r'^[A-Za-z0-9\-_.]{1,64}$')


class CorrelationIdMiddleware:
    """
    Tag every request with an ID that log records and the response carry.

    An inbound X-Request-ID is reused when it looks safe; otherwise a new
    one is generated.
    """

    header = 'X-Request-ID'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        incoming = request.META.get('HTTP_X_REQUEST_ID', '')
        request_id = incoming if _SAFE_REQUEST_ID.match(incoming) else secrets.token_hex(8)
        request.request_id = request_id
        set_correlation_id(request_id)
        try:
            response = self.get_response(request)
        finally:
            set_correlation_id(None)
        response[self.header] = request_id
        return response


class SecurityHeadersMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        response.setdefault('X-Content-Type-Options', 'nosniff')
        response.setdefault('Referrer-Policy', 'strict-origin-when-cross-origin')
        if request.path.startswith('/api/'):
            response.setdefault('Cache-Control', 'no-store')
        return response
