"""Per-user authenticated encryption for audit records.

Each user gets a key derived with HKDF-SHA256 from the master key of a key
version, bound to the context string ``user:{user_id}:v{version}``. The
derived key is never stored; it is recomputed on every call.

Messages are encrypted with AES-256-GCM under a fresh random 12-byte nonce.
The resulting payload records the key version, so decryption always uses
the version the data was written with, not the current one. Payloads
written under rotated keys stay readable as long as their master key is
still resolvable.
"""

from __future__ import annotations

import base64
import binascii
import os
from typing import TYPE_CHECKING

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from inquiry_guard.core.domain_types import EncryptedPayload
from inquiry_guard.core.exceptions import DecryptionError

if TYPE_CHECKING:
    from inquiry_guard.core.interfaces import KeyProvider

IV_LENGTH = 12
TAG_LENGTH = 16
KEY_LENGTH = 32


def derive_user_key(master_key: bytes, user_id: str, version: int) -> bytes:
    """Derive the per-user encryption key.

    Deterministic: the same inputs always give the same key.

    Args:
        master_key: Master key of ``version``.
        user_id: The user the key is bound to.
        version: Key version, part of the derivation context.

    Returns:
        32-byte AES key.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=None,
        info=f"user:{user_id}:v{version}".encode(),
    )
    return hkdf.derive(master_key)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(value: str, field: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecryptionError(f"Malformed payload: {field} is not valid base64") from e


class AuditCipher:
    """Encrypts and decrypts audit payloads with per-user derived keys.

    Holds no mutable state, so one instance can serve all requests in
    parallel.

    Attributes:
        current_version: Key version used when ``encrypt`` gets no version.
    """

    def __init__(self, key_provider: KeyProvider, current_version: int = 1) -> None:
        """Initialize the cipher.

        Args:
            key_provider: Source of master keys.
            current_version: Key version for new encryptions.
        """
        self.key_provider = key_provider
        self.current_version = current_version

    def _user_key(self, user_id: str, version: int) -> bytes:
        master_key = self.key_provider.get_master_key(version)
        return derive_user_key(master_key, user_id, version)

    def encrypt(
        self, plaintext: str, user_id: str, version: int | None = None
    ) -> EncryptedPayload:
        """Encrypt a message for a user.

        Args:
            plaintext: Message to encrypt.
            user_id: Owner of the message.
            version: Key version; defaults to the current version.

        Returns:
            EncryptedPayload carrying the version used.

        Raises:
            CryptoKeyUnavailableError: If the version's master key is unavailable.
        """
        key_version = version if version is not None else self.current_version
        aesgcm = AESGCM(self._user_key(user_id, key_version))

        iv = os.urandom(IV_LENGTH)
        sealed = aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]

        return EncryptedPayload(
            ciphertext=_b64(ciphertext),
            iv=_b64(iv),
            tag=_b64(tag),
            key_version=key_version,
        )

    def decrypt(self, payload: EncryptedPayload, user_id: str) -> str:
        """Decrypt a payload.

        The key is derived from ``payload.key_version``, not the current
        version.

        Args:
            payload: Payload produced by ``encrypt``.
            user_id: The user the payload was encrypted for.

        Returns:
            The original plaintext.

        Raises:
            CryptoKeyUnavailableError: If the payload's master key is unavailable.
            DecryptionError: If the payload is malformed or fails authentication.
        """
        ciphertext = _unb64(payload.ciphertext, "ciphertext")
        iv = _unb64(payload.iv, "iv")
        tag = _unb64(payload.tag, "tag")

        if len(iv) != IV_LENGTH:
            raise DecryptionError(f"Malformed payload: iv must be {IV_LENGTH} bytes")
        if len(tag) != TAG_LENGTH:
            raise DecryptionError(f"Malformed payload: tag must be {TAG_LENGTH} bytes")

        aesgcm = AESGCM(self._user_key(user_id, payload.key_version))
        try:
            plaintext = aesgcm.decrypt(iv, ciphertext + tag, None)
        except InvalidTag as e:
            raise DecryptionError("Authentication tag mismatch") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError("Decrypted payload is not valid UTF-8") from e
