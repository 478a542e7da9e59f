"""Key derivation and authenticated encryption for the audit trail."""

from .cipher import AuditCipher, derive_user_key
from .keys import (
    EnvironmentKeyProvider,
    StaticKeyProvider,
    dev_master_key,
    master_key_env_name,
)

__all__ = [
    "AuditCipher",
    "EnvironmentKeyProvider",
    "StaticKeyProvider",
    "derive_user_key",
    "dev_master_key",
    "master_key_env_name",
]
