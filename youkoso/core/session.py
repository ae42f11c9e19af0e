"""
Session Data Structures
=======================

Runtime-only structures shared by the SessionManager and the My Studio
transport:

- ``SessionState``: the authentication state machine exposed to the UI.
- ``Session``: proof of authentication issued by the API. Never persisted.
- ``ApiRequest``: a transport-neutral description of an authenticated call.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .credentials import Secret


class SessionState(Enum):
    """Authentication state of the SessionManager."""
    UNAUTHENTICATED = "unauthenticated"  # never tried, no credential, or last attempt failed
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"
    INVALIDATED = "invalidated"  # revoked by credential change or logout


@dataclass
class Session:
    """
    An authenticated My Studio session.

    Attributes:
        token: Session token issued by the API.
        issued_at: Epoch seconds when the token was obtained.
        expires_at: Epoch seconds when the token stops being valid, or None
                    when the API did not declare an expiry.
    """
    token: Secret
    issued_at: float = field(default_factory=time.time)
    expires_at: Optional[float] = None

    def is_expired(self, now: Optional[float] = None) -> bool:
        if self.expires_at is None:
            return False
        return (time.time() if now is None else now) >= self.expires_at


@dataclass
class ApiRequest:
    """
    An authenticated call to the My Studio API.

    Attributes:
        path: Endpoint path relative to the API base URL (e.g. "/getStudents").
        method: HTTP method.
        json: Optional JSON body.
        params: Optional query parameters.
    """
    path: str
    method: str = "POST"
    json: Optional[Dict[str, Any]] = None
    params: Optional[Dict[str, Any]] = None
