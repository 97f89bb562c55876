"""Error taxonomy shared by the stores, the generation client and the web layer."""

from __future__ import annotations

PASSWORD_MISMATCH = "PASSWORD_MISMATCH"
USERNAME_TOO_SHORT = "USERNAME_TOO_SHORT"
USERNAME_TAKEN = "USERNAME_TAKEN"
EMPTY_FIELD = "EMPTY_FIELD"
INVALID_IMAGE = "INVALID_IMAGE"
INVALID_THEME = "INVALID_THEME"
SUBMISSION_PENDING = "SUBMISSION_PENDING"


class DrishtiFiError(Exception):
    pass


class ValidationError(DrishtiFiError):
    """Client-side form or credential check failed; shown inline next to the form."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class InvalidCredentials(DrishtiFiError):
    def __init__(self, message: str = "Invalid username or password.") -> None:
        super().__init__(message)
        self.message = message


class MissingCredential(DrishtiFiError):
    """The model API key is not configured; raised before any network call."""


class GenerationFailed(DrishtiFiError):
    def __init__(self, message: str = "Failed to generate credit report. Please try again.") -> None:
        super().__init__(message)
        self.message = message


class StorageError(DrishtiFiError):
    """Read or write against the key-value storage failed."""
