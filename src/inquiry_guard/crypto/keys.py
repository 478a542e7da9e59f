"""Master key providers.

Master keys are 32-byte secrets, one per key version. Version 1 is read
from ``AUDIT_MASTER_KEY``; version N >= 2 from ``AUDIT_MASTER_KEY_V{N}``.
Values are 64-character hex strings.

Providers never log. Callers that enable the development fallback are
responsible for emitting the security warning.
"""

from __future__ import annotations

import hashlib
import os
from collections.abc import Mapping

from inquiry_guard.core.exceptions import CryptoKeyUnavailableError

MASTER_KEY_LENGTH = 32


def master_key_env_name(version: int) -> str:
    """Return the environment variable holding a key version.

    Examples:
        >>> master_key_env_name(1)
        'AUDIT_MASTER_KEY'
        >>> master_key_env_name(3)
        'AUDIT_MASTER_KEY_V3'
    """
    return "AUDIT_MASTER_KEY" if version == 1 else f"AUDIT_MASTER_KEY_V{version}"


def dev_master_key(version: int) -> bytes:
    """Deterministic development key for a version. Never use in production."""
    return hashlib.sha256(f"dev-master-key-v{version}".encode()).digest()


def _check_version(version: int) -> None:
    if version < 1:
        raise CryptoKeyUnavailableError(f"Invalid key version: {version}", version=version)


class EnvironmentKeyProvider:
    """Resolves master keys from environment variables.

    Attributes:
        allow_dev_fallback: Whether missing keys are replaced by
            deterministic development keys. Must be False in production.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        allow_dev_fallback: bool = False,
    ) -> None:
        """Initialize the provider.

        Args:
            environ: Variables to read. Defaults to ``os.environ``.
            allow_dev_fallback: Synthesize keys for unconfigured versions.
        """
        self._environ = environ if environ is not None else os.environ
        self.allow_dev_fallback = allow_dev_fallback

    def get_master_key(self, version: int) -> bytes:
        """Resolve the master key for a version.

        Args:
            version: Key version (>= 1).

        Returns:
            32-byte master key.

        Raises:
            CryptoKeyUnavailableError: If the key is missing (and the dev
                fallback is disabled) or malformed.
        """
        _check_version(version)
        name = master_key_env_name(version)
        key_hex = self._environ.get(name)

        if key_hex:
            if len(key_hex) != MASTER_KEY_LENGTH * 2:
                raise CryptoKeyUnavailableError(
                    f"{name} must be a 64-character hex string (32 bytes)", version=version
                )
            try:
                return bytes.fromhex(key_hex)
            except ValueError as e:
                raise CryptoKeyUnavailableError(
                    f"{name} must be a valid hex string", version=version
                ) from e

        if self.allow_dev_fallback:
            return dev_master_key(version)

        raise CryptoKeyUnavailableError(f"{name} is required", version=version)

    def uses_dev_fallback(self, version: int) -> bool:
        """Return True if ``version`` would resolve to a development key."""
        return self.allow_dev_fallback and not self._environ.get(master_key_env_name(version))


class StaticKeyProvider:
    """Serves master keys from an in-memory mapping.

    Useful for tests and for secret stores that load every version at
    startup. Adding a version never affects existing ones.
    """

    def __init__(self, keys: Mapping[int, bytes]) -> None:
        """Initialize the provider.

        Args:
            keys: Master key per version.

        Raises:
            ValueError: If any key is not 32 bytes.
        """
        for version, key in keys.items():
            if len(key) != MASTER_KEY_LENGTH:
                raise ValueError(f"Master key for version {version} must be 32 bytes")
        self._keys = dict(keys)

    def add_version(self, version: int, key: bytes) -> None:
        """Register a new key version.

        Raises:
            ValueError: If the version already exists or the key is not 32 bytes.
        """
        if version in self._keys:
            raise ValueError(f"Key version {version} already exists")
        if len(key) != MASTER_KEY_LENGTH:
            raise ValueError(f"Master key for version {version} must be 32 bytes")
        self._keys[version] = key

    def get_master_key(self, version: int) -> bytes:
        """Resolve the master key for a version.

        Raises:
            CryptoKeyUnavailableError: If the version is unknown.
        """
        _check_version(version)
        try:
            return self._keys[version]
        except KeyError:
            raise CryptoKeyUnavailableError(
                f"No master key for version {version}", version=version
            ) from None
