"""
Settings Document
=================

This module defines the root persisted entity of the Youkoso application.
The SettingsDocument is created with defaults on first run, loaded once at
startup by the ConfigStore, and only mutated through the SettingsController.

The document is plain data: serialization to and from TOML lives in
``youkoso.utils.config_manager`` which owns the on-disk schema.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .credentials import Credential
from .theme import DEFAULT_THEME, Theme


@dataclass
class SettingsDocument:
    """
    User settings persisted between application runs.

    Attributes:
        theme: Appearance mode picked by the user (System, Light or Dark).
        studio_credentials: My Studio login, or None when nothing is stored.
        extra: Top-level keys found on disk that this version does not know
               about. They are written back unchanged so newer or older builds
               sharing the file do not lose data.
    """
    theme: Theme = DEFAULT_THEME
    studio_credentials: Optional[Credential] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def snapshot(self) -> "SettingsDocument":
        """
        Copy suitable for rollback.

        Credentials are immutable and shared rather than copied, so a snapshot
        never duplicates a password buffer.
        """
        return SettingsDocument(
            theme=self.theme,
            studio_credentials=self.studio_credentials,
            extra=copy.deepcopy(self.extra),
        )

    def restore(self, snapshot: "SettingsDocument") -> None:
        """Overwrite this document in place with the values of ``snapshot``."""
        self.theme = snapshot.theme
        self.studio_credentials = snapshot.studio_credentials
        self.extra = snapshot.extra

    def describe(self) -> Dict[str, Any]:
        """Redacted dictionary for logging."""
        return {
            "theme": self.theme.value,
            "studio_credentials": (
                self.studio_credentials.redacted() if self.studio_credentials else None
            ),
            "extra_keys": sorted(self.extra),
        }
