from __future__ import annotations


class CounselError(Exception):
    """Base class for errors raised by the counsel service."""


class ValidationError(CounselError):
    """The caller-supplied prompt was rejected before any provider call."""


class ProviderError(CounselError):
    """The upstream completion provider failed or answered with garbage."""


class StorageError(CounselError):
    """The conversation store could not complete an operation."""


class StartupError(CounselError):
    """Configuration needed to serve requests could not be loaded."""
