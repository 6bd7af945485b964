# -*- coding: utf-8 -*-
"""
Ошибки лейблера.

InvalidInput / InternalError — ошибки программиста (контракт ранжирования),
ClassifierUnavailable / InvalidRecord — приходят от классификатора как есть.
"""


class LabelerError(Exception):
    """Base class for everything the labeler raises on purpose."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidInput(LabelerError, ValueError):
    """Caller broke the ranking contract (length mismatch, bad k, NaN score)."""


class InternalError(LabelerError, RuntimeError):
    """Ranking produced something it guarantees it never produces."""


class ClassifierUnavailable(LabelerError, RuntimeError):
    """Model bundle could not be loaded or is inconsistent."""


class InvalidRecord(LabelerError, ValueError):
    """Record cannot be classified (nothing to vectorize)."""
