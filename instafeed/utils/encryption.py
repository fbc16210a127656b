"""AES-256-GCM encryption for stored Instagram and Admin API tokens."""
import base64
import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from instafeed.config import Settings
from instafeed.exceptions import ConfigMissing

NONCE_SIZE = 12
KEY_SIZE = 32


class TokenEncryptor:
    """Encrypts tokens as ``base64(nonce || ciphertext || tag)``.

    The shop domain may be bound as associated data so a ciphertext copied to
    another tenant's row fails to decrypt.
    """

    def __init__(self, key_hex: str):
        try:
            key = bytes.fromhex(key_hex)
        except ValueError as exc:
            raise ConfigMissing("ENCRYPTION_KEY must be hex encoded") from exc
        if len(key) != KEY_SIZE:
            raise ConfigMissing(f"ENCRYPTION_KEY must be {KEY_SIZE * 2} hex characters")
        self.aesgcm = AESGCM(key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenEncryptor":
        settings.require("ENCRYPTION_KEY")
        return cls(settings.ENCRYPTION_KEY)

    def encrypt(self, plaintext: str, associated_data: str | None = None) -> str:
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self.aesgcm.encrypt(nonce, plaintext.encode(), _aad(associated_data))
        return base64.b64encode(nonce + ciphertext).decode()

    def decrypt(self, token: str, associated_data: str | None = None) -> str:
        data = base64.b64decode(token)
        nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
        return self.aesgcm.decrypt(nonce, ciphertext, _aad(associated_data)).decode()


def _aad(value: str | None) -> bytes | None:
    return value.encode() if value else None
