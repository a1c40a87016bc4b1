"""Exception hierarchy for the data-access layer.

Failures of the remote store are expected and trigger a fallback to the
local store. Failures of the local store are surfaced to the caller.
"""


class GlucoDiaryError(Exception):
    """Base exception for all glucodiary errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RemoteStoreError(GlucoDiaryError):
    """Base exception for remote store failures."""


class NotAuthenticatedError(RemoteStoreError):
    """No authenticated user could be resolved for a remote operation."""


class BackendError(RemoteStoreError):
    """The remote backend rejected an operation or could not be reached.

    Attributes:
        code: Backend error code (e.g. PostgREST "42501"), or "network"/"client"
    """

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class LocalStoreError(GlucoDiaryError):
    """The on-device store failed. Fatal to the current operation."""


class ReadingNotFoundError(GlucoDiaryError, LookupError):
    """A reading needed to derive merged fields is not loaded."""

    def __init__(self, reading_id: int):
        super().__init__(f"Reading {reading_id} not found")
        self.reading_id = reading_id


class AuthenticationError(GlucoDiaryError):
    """Local login or registration was rejected."""
