"""PII Scanner and Redactor.

This module detects and redacts Personally Identifiable Information (PII)
from user messages before they are sent downstream or displayed.

Patterns are applied sequentially in a fixed order (email, credit card,
SSN). Each scan runs on the output of the previous one, so a span claimed
by an earlier class is already a placeholder when later classes scan.
No validation (e.g. Luhn) is performed: any digit run of the right shape
is redacted.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from inquiry_guard.core.domain_types import PIIType, RedactedItem, SanitizeResult


class PIIPattern(NamedTuple):
    """Pattern for detecting a type of PII."""

    regex: re.Pattern[str]
    pii_type: PIIType
    description: str

    @property
    def placeholder(self) -> str:
        """Replacement text for a match."""
        return f"<REDACTED: {self.pii_type.value}>"


# Scan order is significant: earlier patterns win overlapping spans.
PII_PATTERNS: tuple[PIIPattern, ...] = (
    PIIPattern(
        regex=re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}", re.ASCII),
        pii_type=PIIType.EMAIL,
        description="Email address",
    ),
    PIIPattern(
        regex=re.compile(r"\b(?:\d[ -]*?){13,19}\b", re.ASCII),
        pii_type=PIIType.CREDIT_CARD,
        description="Credit card number",
    ),
    PIIPattern(
        regex=re.compile(r"\b(?:\d{3}-\d{2}-\d{4}|\d{9})\b", re.ASCII),
        pii_type=PIIType.SSN,
        description="Social Security Number",
    ),
)


def sanitize(text: str) -> SanitizeResult:
    """Redact PII from text.

    Never raises. Empty or whitespace-only input comes back unchanged
    with no redacted items.

    Args:
        text: The text to sanitize.

    Returns:
        SanitizeResult with the redacted text and per-class counts.

    Examples:
        >>> sanitize("Contact: john@example.com").redacted_message
        'Contact: <REDACTED: EMAIL>'
        >>> sanitize("Hello world").redacted_items
        ()
    """
    redacted = text
    items: list[RedactedItem] = []

    for pattern in PII_PATTERNS:
        redacted, count = pattern.regex.subn(pattern.placeholder, redacted)
        if count > 0:
            items.append(RedactedItem(type=pattern.pii_type, count=count))

    return SanitizeResult(redacted_message=redacted, redacted_items=tuple(items))


def scan_for_pii(text: str) -> list[PIIType]:
    """Scan text for potential PII without redacting it.

    Args:
        text: The text to scan.

    Returns:
        PII types found, in scan order, without duplicates.

    Examples:
        >>> scan_for_pii("SSN: 123-45-6789")
        [<PIIType.SSN: 'SSN'>]
        >>> scan_for_pii("Hello world")
        []
    """
    return [pattern.pii_type for pattern in PII_PATTERNS if pattern.regex.search(text)]


def contains_pii(text: str) -> bool:
    """Check if text contains any PII.

    Args:
        text: The text to check.

    Returns:
        True if PII is detected, False otherwise.
    """
    return len(scan_for_pii(text)) > 0
