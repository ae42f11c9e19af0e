"""
Application Context
===================

Builds and owns the core objects for one running instance:

- ConfigStore + SettingsController (the only writer of the settings)
- MyStudioClient + SessionManager (the only holder of a session)

The context wires the credential vault to the session manager so a credential
change invalidates the session, and hands explicit references to the
presentation layer instead of exposing module-level singletons.
"""

import logging
from pathlib import Path
from typing import Optional

from youkoso.integrations.my_studio_client import MyStudioClient
from youkoso.utils.config_manager import ConfigStore

from .session_manager import SessionManager
from .settings_controller import SettingsController


class AppContext:
    """
    Container for the application's long-lived core services.

    Attributes:
        controller: SettingsController owning the settings document.
        sessions: SessionManager used for every My Studio call.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        transport=None,
        session_manager: Optional[SessionManager] = None,
    ):
        self.logger = logging.getLogger(__name__)

        self.controller = SettingsController(ConfigStore(config_path))
        self.sessions = session_manager or SessionManager(
            transport or MyStudioClient(),
            credential_provider=self.controller.vault.get,
        )
        self.controller.vault.add_change_listener(self.sessions.invalidate)
        self._closed = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def open(self) -> "AppContext":
        """Load the settings document; reports but survives a corrupt file."""
        self.controller.load()
        if self.controller.corruption is not None:
            self.logger.warning(f"Started with default settings: {self.controller.corruption}")
        return self

    def close(self) -> None:
        """Persist settings and release network resources. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self.logger.info("Closing application context")
        try:
            self.controller.shutdown()
        finally:
            self.sessions.close()
