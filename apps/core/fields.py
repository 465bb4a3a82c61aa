"""
Model fields that store their value through the field cipher.
"""

import logging

from django.db import models

from .encryption import EncryptionError, decrypt, encrypt, is_encrypted

logger = logging.getLogger(__name__)


class EncryptedTextField(models.TextField):
    """
    Text column holding an ``iv:authTag:ciphertext`` triple.

    Python code always sees plain text; the database only ever sees the
    sealed value. Lookups by value are not supported (the IV is random).
    """

    def from_db_value(self, value, expression, connection):
        if not value or not is_encrypted(value):
            return value
        try:
            return decrypt(value)
        except EncryptionError:
            logger.error("Could not decrypt %s.%s; returning stored value", self.model.__name__, self.name)
            return value

    def get_prep_value(self, value):
        value = super().get_prep_value(value)
        if not value or is_encrypted(value):
            return value
        return encrypt(value)
