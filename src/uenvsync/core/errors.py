"""
Custom exception types used across uenvsync.

The CLI catches UEnvSyncError and reports it; anything else is a bug.
"""

from typing import Optional


class UEnvSyncError(Exception):
    """Base class for all uenvsync specific errors."""


class NotFoundError(UEnvSyncError):
    """Raised when a local file, remote file or backup is missing."""


class SettingsError(UEnvSyncError):
    """Raised when the settings file cannot be read or is malformed."""


class TransportError(UEnvSyncError):
    """Raised when an ssh command against the remote device fails."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
