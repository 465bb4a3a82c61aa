"""
Field-level encryption for sensitive employee data.

Values are sealed with AES-256-GCM and stored as ``iv:authTag:ciphertext``
(all hex). Every call draws a fresh random IV that is handed to the cipher
explicitly, so the stored IV is the one that produced the ciphertext.
"""

import hashlib
import os
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from django.conf import settings

SENSITIVE_FIELDS = ('ssn', 'caqh_password', 'nppes_password')

IV_LENGTH = 12
TAG_LENGTH = 16


class EncryptionError(Exception):
    """Raised when a value cannot be sealed or opened."""


class FieldCipher:
    """
    AES-256-GCM cipher keyed by SHA-256 of the configured ENCRYPTION_KEY.
    """

    def __init__(self, key_material: str):
        if not key_material:
            raise EncryptionError("ENCRYPTION_KEY is not configured")
        self._aead = AESGCM(hashlib.sha256(key_material.encode('utf-8')).digest())

    def encrypt(self, plain_text: str) -> str:
        if not plain_text:
            return ''
        return self._encrypt_with_iv(plain_text, os.urandom(IV_LENGTH))

    def _encrypt_with_iv(self, plain_text: str, iv: bytes) -> str:
        sealed = self._aead.encrypt(iv, plain_text.encode('utf-8'), None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        if not token:
            return ''
        parts = token.split(':')
        if len(parts) != 3:
            raise EncryptionError("Invalid encrypted value format")
        try:
            iv, tag, ciphertext = (bytes.fromhex(part) for part in parts)
        except ValueError as exc:
            raise EncryptionError("Encrypted value is not valid hex") from exc
        try:
            return self._aead.decrypt(iv, ciphertext + tag, None).decode('utf-8')
        except (InvalidTag, ValueError) as exc:
            raise EncryptionError("Encrypted value failed authentication") from exc


_cipher_cache = {}


def get_cipher() -> FieldCipher:
    key_material = settings.ENCRYPTION_KEY
    cipher = _cipher_cache.get(key_material)
    if cipher is None:
        cipher = _cipher_cache[key_material] = FieldCipher(key_material)
    return cipher


def encrypt(value: str) -> str:
    return get_cipher().encrypt(value)


def decrypt(value: str) -> str:
    return get_cipher().decrypt(value)


def is_encrypted(value) -> bool:
    """True when ``value`` has the shape of an ``iv:authTag:ciphertext`` triple."""
    if not isinstance(value, str):
        return False
    parts = value.split(':')
    if len(parts) != 3 or not all(parts[:2]):
        return False
    try:
        iv, tag = bytes.fromhex(parts[0]), bytes.fromhex(parts[1])
        bytes.fromhex(parts[2])
    except ValueError:
        return False
    return len(tag) == TAG_LENGTH and len(iv) >= 8


def encrypt_sensitive_fields(data: dict) -> dict:
    """Return a copy of ``data`` with SSN and stored service passwords encrypted."""
    result = dict(data)
    for field in SENSITIVE_FIELDS:
        value = result.get(field)
        if value and not is_encrypted(value):
            result[field] = encrypt(value)
    return result


def decrypt_sensitive_fields(data: dict) -> dict:
    result = dict(data)
    for field in SENSITIVE_FIELDS:
        value = result.get(field)
        if value and is_encrypted(value):
            result[field] = decrypt(value)
    return result


def mask_ssn(value: str) -> str:
    """Reveal only the last four characters of an SSN (decrypting first if needed)."""
    if not value:
        return ''
    plain = decrypt(value) if is_encrypted(value) else value
    if len(plain) < 4:
        return '***-**-****'
    return f"***-**-{plain[-4:]}"


def mask(text: str, show_chars: int = 4) -> str:
    if not text or len(text) <= show_chars:
        return '****'
    return text[:show_chars] + '****'
