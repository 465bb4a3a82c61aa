"""
Core Utilities
"""

import logging
import secrets
from typing import Optional

from django.conf import settings

logger = logging.getLogger(__name__)


def generate_token(nbytes: int = 32) -> str:
    """URL-safe random token for invitations and similar one-shot links"""
    return secrets.token_urlsafe(nbytes)


def get_client_ip(request) -> Optional[str]:
    xff = request.META.get("HTTP_X_FORWARDED_FOR")
    if xff:
        return xff.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def get_base_url(request=None) -> str:
    """
    Resolve the public base URL used in generated links.

    Priority: APP_BASE_URL, first REPLIT_DOMAINS entry (https), the
    request's scheme and host, then http://localhost:<PORT>.
    """
    app_base_url = getattr(settings, "APP_BASE_URL", "")
    if app_base_url:
        return app_base_url.rstrip("/")

    domains = [d.strip() for d in getattr(settings, "REPLIT_DOMAINS", []) if d.strip()]
    if domains:
        return f"https://{domains[0]}"

    if request is not None:
        return f"{request.scheme}://{request.get_host()}"

    port = getattr(settings, "PORT", None) or "5000"
    return f"http://localhost:{port}"


def generate_full_url(path: str, request=None) -> str:
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{get_base_url(request)}{path}"
