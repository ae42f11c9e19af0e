"""
Youkoso Error Taxonomy
======================

Every failure that crosses a component boundary is converted into one of the
exceptions below. Raw transport, parse and file-system errors stay inside the
component that produced them and are attached as ``__cause__``.

None of these errors are fatal: the worst case is an application running with
default settings and no active session.
"""

from pathlib import Path
from typing import Optional

from .config import UNAUTHORIZED_STATUS_CODES


# ============================================================================
# BASE
# ============================================================================

class YoukosoError(Exception):
    """Base exception for all Youkoso core errors."""
    pass


# ============================================================================
# SETTINGS
# ============================================================================

class ConfigCorrupt(YoukosoError):
    """The settings file exists but could not be read or parsed.

    Recovered by falling back to defaults; the file itself is left untouched.
    """

    def __init__(self, path: Path, cause: Exception):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Settings file '{self.path}' is corrupt: {cause}")


class ValidationError(YoukosoError):
    """User input was rejected before anything was persisted."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class PersistFailed(YoukosoError):
    """Writing the settings file failed; in-memory state was rolled back."""

    def __init__(self, path: Path, cause: Optional[Exception] = None):
        self.path = Path(path)
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to save settings to '{self.path}'{detail}")


# ============================================================================
# AUTHENTICATION
# ============================================================================

class AuthError(YoukosoError):
    """Base class for authentication failures."""
    pass


class AuthRejected(AuthError):
    """The service refused the credential. Never retried automatically."""
    pass


class AuthUnreachable(AuthError):
    """The service could not be reached. Retried with backoff before surfacing."""
    pass


# ============================================================================
# API
# ============================================================================

class ApiError(YoukosoError):
    """A request failed after authentication.

    Attributes:
        url: The endpoint that was called.
        status_code: HTTP status when the server answered, otherwise None.
        transient: True when repeating the call later may succeed.
    """

    def __init__(
        self,
        message: str,
        url: str = "",
        status_code: Optional[int] = None,
        transient: bool = False,
    ):
        self.message = message
        self.url = url
        self.status_code = status_code
        self.transient = transient
        super().__init__(message)

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code in UNAUTHORIZED_STATUS_CODES

    @classmethod
    def missing_field(cls, field: str, url: str) -> "ApiError":
        return cls(f"Missing or invalid field '{field}' in response from call to {url}.", url=url)

    @classmethod
    def unrecognized_value(cls, field: str, value: str, url: str) -> "ApiError":
        return cls(
            f"Unrecognized value '{value}' for field '{field}' in response from call to {url}.",
            url=url,
        )

    def __repr__(self) -> str:
        return (
            f"ApiError(message={self.message!r}, url={self.url!r}, "
            f"status_code={self.status_code!r}, transient={self.transient!r})"
        )
