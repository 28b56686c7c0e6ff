"""
Encryption of partition-role secrets at rest

Partition roles need a recoverable password (the router must log in as the
role), so unlike user credentials these are encrypted, not hashed.
"""

import base64
import structlog
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from brandos.core.config import Settings

logger = structlog.get_logger(__name__)


class SecretCipher:
    """Fernet cipher keyed from TENANT_SECRET_KEY via PBKDF2"""

    def __init__(self, master_key: str, salt: bytes, iterations: int = 100_000):
        if not master_key:
            raise ValueError("A master key is required to encrypt partition secrets")
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=iterations,
        )
        key = base64.urlsafe_b64encode(kdf.derive(master_key.encode("utf-8")))
        self._fernet = Fernet(key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SecretCipher":
        return cls(settings.TENANT_SECRET_KEY, settings.TENANT_SECRET_SALT.encode("utf-8"))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        try:
            return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except InvalidToken:
            logger.error("partition_secret.decrypt_failed")
            raise
