"""
Settings Controller
===================

The SettingsController is the single writer of the settings document. The
settings UI, the credential vault and the shutdown hook all go through it, so
the document in memory and the file on disk never diverge.

Every mutation follows the same sequence:

1. Validate the input (``ValidationError`` on rejection, nothing persisted).
2. Snapshot the document and apply the change in memory.
3. Save through the ConfigStore.
4. On ``PersistFailed`` restore the snapshot and re-raise.

Observers (theme listeners, the session manager via the vault) are notified
only after a successful save, and while the lock is still held so they see
changes in commit order.

Usage:
------
    >>> controller = SettingsController(ConfigStore(path))
    >>> controller.load()
    >>> controller.set_theme("Dark")
    >>> controller.update_credentials("me@studio.com", "secret", "1234")
"""

import logging
import threading
from typing import Callable, Optional, Union

from .credentials import Credential, CredentialVault, Secret
from .errors import ConfigCorrupt, PersistFailed, ValidationError
from .settings import SettingsDocument
from .theme import DEFAULT_THEME, Theme, ThemePreference


class SettingsController:
    """
    Mediator owning the in-memory SettingsDocument.

    Attributes:
        store: The ConfigStore used for every save.
        document: The live document. Read freely; mutate only via this class.
        theme: ThemePreference observed by the presentation layer.
        vault: CredentialVault for the My Studio credential.
        lock: Re-entrant lock serializing all writers.
        corruption: ConfigCorrupt reported by the last load, if any.
    """

    def __init__(self, store):
        self.logger = logging.getLogger(__name__)
        self.store = store
        self.document = SettingsDocument()
        self.lock = threading.RLock()
        self.theme = ThemePreference(self.document.theme)
        self.vault = CredentialVault(self)
        self.corruption: Optional[ConfigCorrupt] = None

    # ------------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------------

    def load(self) -> SettingsDocument:
        """
        Load the document from disk once at startup.

        On first run (no file) the defaults are written immediately. A corrupt
        file is left alone until the next explicit save.
        """
        with self.lock:
            first_run = not self.store.path.exists()
            self.document = self.store.load()
            self.corruption = self.store.last_error

            if first_run:
                self.logger.info("First run: writing default settings")
                try:
                    self.store.save(self.document)
                except PersistFailed as e:
                    self.logger.error(f"Could not create default settings file: {e}")

            self.theme.set(self.document.theme)
        return self.document

    def shutdown(self) -> bool:
        """Persist the document on graceful exit. Returns False if the save failed."""
        with self.lock:
            try:
                self.store.save(self.document)
            except PersistFailed as e:
                self.logger.error(f"Final settings save failed: {e}")
                return False
        self.logger.info("Settings saved on shutdown")
        return True

    # ------------------------------------------------------------------------
    # COMMIT
    # ------------------------------------------------------------------------

    def commit(self, mutate: Callable[[SettingsDocument], None], description: str = "settings") -> None:
        """
        Apply ``mutate`` to the document and persist, rolling back on failure.

        Raises:
            PersistFailed: The save failed; the document is back to its
                previous state.
        """
        with self.lock:
            snapshot = self.document.snapshot()
            mutate(self.document)
            try:
                self.store.save(self.document)
            except PersistFailed:
                self.logger.warning(f"Rolling back {description} change after failed save")
                self.document.restore(snapshot)
                raise
            self.logger.debug(f"Committed {description} change")

    # ------------------------------------------------------------------------
    # THEME
    # ------------------------------------------------------------------------

    def set_theme(self, theme: Union[Theme, str]) -> Theme:
        """
        Change the theme and persist it immediately.

        Raises:
            ValidationError: ``theme`` does not name a theme.
            PersistFailed: The change could not be saved and was rolled back.
        """
        try:
            theme = Theme.parse(theme)
        except ValueError as e:
            raise ValidationError("theme", str(e)) from e

        with self.lock:
            if theme == self.document.theme:
                return theme

            def apply(document):
                document.theme = theme

            self.commit(apply, "theme")
            self.theme.set(self.document.theme)

        return theme

    def reset_theme(self) -> Theme:
        return self.set_theme(DEFAULT_THEME)

    # ------------------------------------------------------------------------
    # CREDENTIALS
    # ------------------------------------------------------------------------

    def update_credentials(self, email: str, password: Union[str, Secret], company_id: str) -> Credential:
        """
        Validate form input and store it as the My Studio credential.

        Raises:
            ValidationError: Email or company id is empty, or the email is malformed.
            PersistFailed: The change could not be saved and was rolled back.
        """
        credential = Credential.create(email, password, company_id)
        validate_credential(credential)
        self.vault.set(credential)
        return credential

    def clear_credentials(self) -> None:
        self.vault.clear()

    reset_credentials = clear_credentials

    def reset_all(self) -> None:
        """Restore the theme and credential defaults in a single save."""
        with self.lock:
            previous = self.document.studio_credentials

            def apply(document):
                document.theme = DEFAULT_THEME
                document.studio_credentials = None

            self.commit(apply, "reset")
            self.theme.set(self.document.theme)
            self.vault.retire(previous, None)


def validate_credential(credential: Credential) -> None:
    """Raise ValidationError for the first unusable field of ``credential``."""
    if not credential.email:
        raise ValidationError("email", "Email must not be empty")
    if "@" not in credential.email:
        raise ValidationError("email", "Email address is not valid")
    if not credential.company_id:
        raise ValidationError("company_id", "Company ID must not be empty")
