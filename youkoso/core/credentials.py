"""
Credential Handling
===================

This module holds everything that touches the My Studio credential triple
(email, password, company id):

- ``Secret``: a string wrapper that never formats its value and can be zeroed.
- ``Credential``: the immutable triple, with the password held as a Secret.
- ``CredentialVault``: the credential view over the settings document. Writes
  go through the SettingsController so there is still a single writer, and
  every real change invalidates the live API session.

The raw password is only ever produced by ``Secret.reveal()``, which the
transport calls while building an authentication request.

Author: Youkoso Project
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from .config import REDACTED_PLACEHOLDER

logger = logging.getLogger(__name__)


class Secret:
    """
    A secret string that redacts itself everywhere it could leak.

    ``repr()``, ``str()`` and f-strings all produce the redaction placeholder.
    The value is kept in a mutable buffer so ``wipe()`` can overwrite it once
    it is no longer needed.
    """

    __slots__ = ("_buffer",)

    def __init__(self, value: Union[str, "Secret"] = ""):
        if isinstance(value, Secret):
            value = value.reveal()
        self._buffer = bytearray(value.encode("utf-8"))

    def reveal(self) -> str:
        """Return the raw value. Callers must not log or store the result."""
        return self._buffer.decode("utf-8")

    def wipe(self) -> None:
        """Zero the backing buffer and forget its length."""
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        self._buffer = bytearray()

    @property
    def is_empty(self) -> bool:
        return len(self._buffer) == 0

    def __bool__(self) -> bool:
        return not self.is_empty

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Secret):
            return NotImplemented
        return hmac.compare_digest(bytes(self._buffer), bytes(other._buffer))

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"Secret('{REDACTED_PLACEHOLDER}')"

    def __str__(self) -> str:
        return REDACTED_PLACEHOLDER

    def __format__(self, format_spec: str) -> str:
        return format(REDACTED_PLACEHOLDER, format_spec)

    def __reduce__(self):
        raise TypeError("Secret values cannot be pickled")


@dataclass(frozen=True)
class Credential:
    """
    My Studio login credential.

    Attributes:
        email: Account email used for the login call.
        password: Account password, always a Secret.
        company_id: Studio identifier used to request the attendance token.
    """
    email: str
    password: Secret
    company_id: str

    def __post_init__(self):
        if not isinstance(self.password, Secret):
            object.__setattr__(self, "password", Secret(self.password))

    @classmethod
    def create(cls, email: str, password: Union[str, Secret], company_id: str) -> "Credential":
        """Build a credential from raw form input, trimming surrounding whitespace."""
        return cls(
            email=(email or "").strip(),
            password=password if isinstance(password, Secret) else Secret(password or ""),
            company_id=(company_id or "").strip(),
        )

    @property
    def is_blank(self) -> bool:
        return not self.email and not self.company_id and self.password.is_empty

    def redacted(self) -> Dict[str, str]:
        """Diagnostic view with the password replaced by the placeholder."""
        return {
            "email": self.email,
            "password": REDACTED_PLACEHOLDER,
            "company_id": self.company_id,
        }


class CredentialVault:
    """
    Owner of the stored My Studio credential.

    The vault reads the credential from the controller's document and routes
    every write through ``SettingsController.commit`` so persistence and
    rollback stay in one place. Listeners (the SessionManager) are told when
    the stored credential really changes.
    """

    def __init__(self, controller):
        self._controller = controller
        self._listeners: List[Callable[[], Any]] = []

    def add_change_listener(self, callback: Callable[[], Any]) -> None:
        self._listeners.append(callback)

    def get(self) -> Optional[Credential]:
        """Return the current credential, or None when none is stored."""
        return self._controller.document.studio_credentials

    def set(self, credential: Credential) -> None:
        """
        Replace the stored credential and persist it.

        Raises:
            PersistFailed: The settings file could not be written. The previous
                credential stays in place and no listener is notified.
        """
        with self._controller.lock:
            previous = self.get()
            self._controller.commit(_assign_credential(credential), "credentials")
            self.retire(previous, credential)

    def clear(self) -> None:
        """Remove the stored credential, persist, and invalidate the session."""
        with self._controller.lock:
            previous = self.get()
            self._controller.commit(_assign_credential(None), "credentials cleared")
            self.retire(previous, None)

    def describe(self) -> Optional[Dict[str, str]]:
        credential = self.get()
        return credential.redacted() if credential else None

    def retire(self, previous: Optional[Credential], current: Optional[Credential]) -> None:
        """
        Notify listeners of a real change, then wipe the superseded password.

        Listeners run first so the session manager stops using the old
        credential before its password is zeroed. Called with the controller
        lock held.
        """
        if previous == current:
            logger.debug("Stored credential unchanged; session left intact")
            return

        logger.info(f"Stored My Studio credential {'replaced' if current else 'cleared'}")
        for callback in list(self._listeners):
            try:
                callback()
            except Exception as e:
                logger.error(f"Credential change listener failed: {e}", exc_info=True)

        if previous is not None and (current is None or previous.password is not current.password):
            previous.password.wipe()


def _assign_credential(credential: Optional[Credential]) -> Callable:
    def mutate(document):
        document.studio_credentials = credential
    return mutate
