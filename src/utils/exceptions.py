"""
src/utils/exceptions.py
Error taxonomy shared by the sources, the store adapter and the pipeline.
"""
from __future__ import annotations


class LotteryError(Exception):
    """Base exception for all checker errors."""


class RemoteError(LotteryError):
    """A remote call (results API, generation service) failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class TransientRemoteError(RemoteError):
    """Rate-limited or temporarily unavailable. Safe to retry."""


class PermanentRemoteError(RemoteError):
    """Malformed request, auth failure or bad payload. Never retried."""


class StorageUnavailable(LotteryError):
    """The persistence store could not be reached or rejected the operation."""


class ValidationError(LotteryError):
    """A draw record or a selection is malformed."""


class OperationCancelled(LotteryError):
    """The owning session was closed while a remote call was pending."""


class ConfigurationError(LotteryError):
    """An environment setting has an invalid value."""
