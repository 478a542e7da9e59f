"""inquiry_guard - PII-safe mediation between users and a downstream AI backend."""

__version__ = "0.1.0"
