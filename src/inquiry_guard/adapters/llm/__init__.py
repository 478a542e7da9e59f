"""Downstream AI backend adapters."""

from .mock import MockAIBackend, SimulatedFailure

__all__ = ["MockAIBackend", "SimulatedFailure"]
