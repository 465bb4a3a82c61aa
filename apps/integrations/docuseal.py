"""
DocuSeal HTTP client.

Thin wrapper over the DocuSeal REST API (``X-Auth-Token`` auth). Every
failure surfaces as ``DocuSealError`` with a typed ``error_type`` so views
can answer with a matching status and a remediation hint.
"""

import logging

import requests
from django.conf import settings
from django.utils import timezone
from rest_framework import status

from apps.core.exceptions import APIException

logger = logging.getLogger(__name__)

TEMPLATE_NOT_FOUND = 'TEMPLATE_NOT_FOUND'
SERVICE_UNAVAILABLE = 'SERVICE_UNAVAILABLE'
UNAUTHORIZED = 'UNAUTHORIZED'
INVALID_REQUEST = 'INVALID_REQUEST'

ERROR_STATUS = {
    TEMPLATE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    SERVICE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
}

ERROR_HINTS = {
    TEMPLATE_NOT_FOUND: 'Sync templates from DocuSeal and check the template still exists.',
    SERVICE_UNAVAILABLE: 'DocuSeal could not be reached. Try again in a few minutes.',
    UNAUTHORIZED: 'Check the DocuSeal API key in the integration settings.',
    INVALID_REQUEST: 'Check the recipient details and template signer roles.',
}


class DocuSealError(APIException):
    """A failed DocuSeal call, classified by ``error_type``."""

    def __init__(self, error_type, message, upstream_status=None):
        self.error_type = error_type
        self.upstream_status = upstream_status
        super().__init__(
            message,
            code=error_type,
            status_code=ERROR_STATUS.get(error_type, status.HTTP_503_SERVICE_UNAVAILABLE),
            details={'error_type': error_type, 'hint': ERROR_HINTS.get(error_type, '')},
        )

    @classmethod
    def from_status(cls, http_status, message):
        if http_status == 404:
            error_type = TEMPLATE_NOT_FOUND
        elif http_status in (401, 403):
            error_type = UNAUTHORIZED
        elif http_status in (400, 422):
            error_type = INVALID_REQUEST
        else:
            error_type = SERVICE_UNAVAILABLE
        return cls(error_type, message, upstream_status=http_status)


def _unwrap_list(payload):
    if isinstance(payload, dict):
        return payload.get('data') or []
    return payload or []


def extract_submission_id(payload):
    """
    ``POST /submissions`` answers either with a list of submitters (each
    carrying ``submission_id``) or with a submission object.
    """
    if isinstance(payload, list):
        if payload:
            first = payload[0]
            return str(first.get('submission_id') or first.get('id') or '') or None
        return None
    if isinstance(payload, dict):
        if payload.get('submission_id'):
            return str(payload['submission_id'])
        if payload.get('id'):
            return str(payload['id'])
        submitters = payload.get('submitters') or []
        if submitters and submitters[0].get('submission_id'):
            return str(submitters[0]['submission_id'])
    return None


def signing_url_for(submitter):
    if submitter.get('embed_src'):
        return submitter['embed_src']
    token = submitter.get('slug') or submitter.get('id')
    if not token:
        return None
    base = getattr(settings, 'DOCUSEAL_SIGNING_BASE_URL', 'https://docuseal.com').rstrip('/')
    return f"{base}/s/{token}"


class DocuSealClient:

    def __init__(self, api_key=None, base_url=None, timeout=None):
        self.api_key = api_key
        self.base_url = (base_url or 'https://api.docuseal.co').rstrip('/')
        self.timeout = timeout or getattr(settings, 'DOCUSEAL_TIMEOUT_SECONDS', 15)
        self.session = requests.Session()

    @classmethod
    def from_settings(cls):
        """Stored configuration first, then environment settings."""
        from .models import DocuSealConfiguration

        configuration = DocuSealConfiguration.active()
        if configuration is not None and configuration.api_key:
            return cls(api_key=configuration.api_key, base_url=configuration.base_url)
        return cls(
            api_key=getattr(settings, 'DOCUSEAL_API_KEY', ''),
            base_url=getattr(settings, 'DOCUSEAL_BASE_URL', None),
        )

    @property
    def is_configured(self):
        return bool(self.api_key)

    def _request(self, method, path, **kwargs):
        if not self.api_key:
            raise DocuSealError(UNAUTHORIZED, 'DocuSeal API key not configured')

        url = path if path.startswith('http') else f"{self.base_url}{path}"
        headers = kwargs.pop('headers', {})
        headers.setdefault('X-Auth-Token', self.api_key)
        headers.setdefault('Accept', 'application/json')

        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("docuseal_request_failed method=%s path=%s error=%s", method, path, exc)
            raise DocuSealError(SERVICE_UNAVAILABLE, 'DocuSeal service is unavailable') from exc

        if response.status_code >= 400:
            logger.warning(
                "docuseal_error method=%s path=%s status=%s body=%s",
                method, path, response.status_code, response.text[:500],
            )
            raise DocuSealError.from_status(
                response.status_code,
                f"DocuSeal request failed: {response.status_code} {response.reason}",
            )
        return response

    def _json(self, method, path, **kwargs):
        response = self._request(method, path, **kwargs)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise DocuSealError(SERVICE_UNAVAILABLE, 'DocuSeal returned an invalid response') from exc

    def list_templates(self):
        return _unwrap_list(self._json('GET', '/templates'))

    def get_template(self, template_id):
        return self._json('GET', f'/templates/{template_id}')

    def create_submission(self, template_id, submitters, send_email=True, message=None):
        payload = {
            'template_id': int(template_id) if str(template_id).isdigit() else template_id,
            'send_email': send_email,
            'submitters': submitters,
        }
        if message:
            payload['message'] = message
        data = self._json('POST', '/submissions', json=payload)
        submission_id = extract_submission_id(data)
        if not submission_id:
            raise DocuSealError(SERVICE_UNAVAILABLE, 'DocuSeal response did not include a submission id')
        return submission_id, data

    def get_submission(self, submission_id):
        return self._json('GET', f'/submissions/{submission_id}')

    def list_documents(self, submission_id):
        data = self._json('GET', f'/submissions/{submission_id}/documents')
        if isinstance(data, dict):
            return data.get('documents') or []
        return data or []

    def download_documents(self, submission_id):
        """Return ``(pdf bytes, file name)`` of the first completed document."""
        documents = self.list_documents(submission_id)
        if not documents or not documents[0].get('url'):
            raise DocuSealError(TEMPLATE_NOT_FOUND, 'No completed documents are available for this submission')
        document = documents[0]
        response = self._request('GET', document['url'], headers={'Accept': 'application/pdf'})
        return response.content, document.get('name') or f'submission-{submission_id}'

    def remind(self, submission_id, submitter_id=None):
        body = {'submitter_id': submitter_id} if submitter_id else {}
        return self._json('POST', f'/submissions/{submission_id}/remind', json=body)

    def signing_url(self, submission_id, signer_email):
        submission = self.get_submission(submission_id)
        for submitter in submission.get('submitters') or []:
            if (submitter.get('email') or '').lower() == signer_email.lower():
                return signing_url_for(submitter)
        return None

    def test_connection(self, configuration=None):
        """Call ``/templates``; records the outcome on ``configuration``."""
        try:
            self._request('GET', '/templates', params={'limit': 1})
            success, error = True, ''
        except DocuSealError as exc:
            success, error = False, exc.message
        if configuration is not None:
            configuration.last_test_at = timezone.now()
            configuration.last_test_success = success
            configuration.last_test_error = error
            configuration.save(update_fields=['last_test_at', 'last_test_success', 'last_test_error', 'updated_at'])
        return success, error
