"""Key version report job.

Counts stored audit entries per key version and checks that every
version still resolves through the configured key provider. A version
that no longer resolves means its entries can never be decrypted again,
so run this before retiring a master key.

Run via: python -m inquiry_guard.jobs.key_report
"""

import asyncio
import os
import sys
from dataclasses import dataclass

import asyncpg
import structlog

from inquiry_guard.adapters.audit import PostgresAuditStore
from inquiry_guard.core.exceptions import CryptoKeyUnavailableError
from inquiry_guard.core.interfaces import AuditStore, KeyProvider
from inquiry_guard.crypto import EnvironmentKeyProvider

logger = structlog.get_logger()


@dataclass(frozen=True)
class KeyVersionUsage:
    """Entries stored under one key version."""

    version: int
    entries: int
    resolvable: bool


async def build_report(store: AuditStore, key_provider: KeyProvider) -> list[KeyVersionUsage]:
    """Build the per-version usage report.

    Args:
        store: Audit store to count entries in.
        key_provider: Provider the application decrypts with.

    Returns:
        One row per key version found in the store, ordered by version.
    """
    counts = await store.count_by_key_version()
    report: list[KeyVersionUsage] = []
    for version in sorted(counts):
        try:
            key_provider.get_master_key(version)
            resolvable = True
        except CryptoKeyUnavailableError:
            resolvable = False
        report.append(
            KeyVersionUsage(version=version, entries=counts[version], resolvable=resolvable)
        )
    return report


async def main() -> int:
    """Run the key version report.

    Returns:
        Process exit code: 1 if any version is unresolvable or the
        database is not configured, 0 otherwise.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("DATABASE_URL not set")
        return 1

    # Never fall back to development keys here: the report must reflect
    # what production can actually decrypt.
    key_provider = EnvironmentKeyProvider(allow_dev_fallback=False)

    logger.info("Connecting to database...")
    pool = await asyncpg.create_pool(database_url)

    try:
        report = await build_report(PostgresAuditStore(pool), key_provider)
    finally:
        await pool.close()

    for row in report:
        log = logger.bind(key_version=row.version, entries=row.entries)
        if row.resolvable:
            log.info("key_version_resolvable")
        else:
            log.error("key_version_unresolvable")

    return 0 if all(row.resolvable for row in report) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
