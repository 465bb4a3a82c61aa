"""
Logging helpers wired in through ``LOGGING["filters"]``.

``CorrelationIdFilter`` stamps each record with the request ID set by
``CorrelationIdMiddleware``; ``SensitiveDataFilter`` masks anything shaped
like an SSN before a record reaches a handler.
"""

import logging
import re
from contextvars import ContextVar
from typing import Optional

_correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

SSN_PATTERN = re.compile(r'\b\d{3}-?\d{2}-?(\d{4})\b')


def set_correlation_id(correlation_id: Optional[str]) -> None:
    _correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


class CorrelationIdFilter(logging.Filter):

    def filter(self, record):
        record.correlation_id = get_correlation_id() or '-'
        return True


class SensitiveDataFilter(logging.Filter):

    def filter(self, record):
        message = record.getMessage()
        masked = SSN_PATTERN.sub(r'***-**-\1', message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True
