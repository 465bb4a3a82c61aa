"""
scrypt password hashing.

Stored form is ``<derived key hex>.<salt hex>``. The salt is 16 random
bytes rendered as hex; the hex string itself is fed to the KDF as the salt
so hashes created by earlier deployments keep verifying.
"""

import hashlib
import hmac
import secrets

from django.contrib.auth.hashers import BasePasswordHasher, mask_hash
from django.utils.translation import gettext_noop as _

SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64
SALT_BYTES = 16


def _derive(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode('utf-8'),
        salt=salt.encode('utf-8'),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_LENGTH,
        maxmem=64 * 1024 * 1024,
    )


def hash_password(password: str) -> str:
    salt = secrets.token_hex(SALT_BYTES)
    return f"{_derive(password, salt).hex()}.{salt}"


def compare_passwords(supplied: str, stored: str) -> bool:
    """Constant-time check of ``supplied`` against a ``hash.salt`` value."""
    if not stored or '.' not in stored:
        return False
    hashed, salt = stored.rsplit('.', 1)
    try:
        expected = bytes.fromhex(hashed)
    except ValueError:
        return False
    return hmac.compare_digest(_derive(supplied, salt), expected)


class ScryptPasswordHasher(BasePasswordHasher):
    """
    Django hasher wrapper so ``User.set_password`` / ``check_password`` use
    the same storage format. Django stores ``scrypt_hex$<hash>.<salt>``.
    """

    algorithm = 'scrypt_hex'

    def salt(self):
        return secrets.token_hex(SALT_BYTES)

    def encode(self, password, salt):
        self._check_encode_args(password, salt)
        return f"{self.algorithm}${_derive(password, salt).hex()}.{salt}"

    def decode(self, encoded):
        algorithm, value = encoded.split('$', 1)
        assert algorithm == self.algorithm
        hashed, salt = value.rsplit('.', 1)
        return {'algorithm': algorithm, 'hash': hashed, 'salt': salt}

    def verify(self, password, encoded):
        decoded = self.decode(encoded)
        return compare_passwords(password, f"{decoded['hash']}.{decoded['salt']}")

    def safe_summary(self, encoded):
        decoded = self.decode(encoded)
        return {
            _('algorithm'): decoded['algorithm'],
            _('salt'): mask_hash(decoded['salt']),
            _('hash'): mask_hash(decoded['hash']),
        }

    def must_update(self, encoded):
        return False

    def harden_runtime(self, password, encoded):
        pass
