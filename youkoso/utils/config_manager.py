"""
Application Configuration Persistence
======================================

This module manages the serialization and deserialization of the Youkoso
settings document. It ensures that the theme and the My Studio credential are
preserved between application restarts.

Key Responsibilities:
---------------------
- File-System Persistence: Stores settings in a TOML file (``config.toml``
  next to the executable, or the path in ``$YOUKOSO_CONFIG``).
- Crash Safety: Writes go to a temporary file in the same directory which is
  then renamed over the old file, so a crash never leaves a half-written file.
- Schema Tolerance: Missing fields fall back to defaults, unknown top-level
  keys are carried through, and a corrupt file is reported and replaced by
  defaults in memory without touching the file on disk.
- Security Logging: Save/load events are logged through ``log_config`` which
  redacts credentials.

Author: Youkoso Project
"""

import logging
import os
import sys
import tempfile
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

import tomli_w

from youkoso.core.config import (
    CONFIG_FILENAME,
    CONFIG_PATH_ENV,
    MY_STUDIO_TABLE,
    SCHEMA_VERSION,
    SCHEMA_VERSION_KEY,
)
from youkoso.core.credentials import Credential
from youkoso.core.errors import ConfigCorrupt, PersistFailed
from youkoso.core.settings import SettingsDocument
from youkoso.core.theme import DEFAULT_THEME, Theme
from youkoso.utils.logger import log_config

logger = logging.getLogger(__name__)

THEME_KEY = "theme"
CREDENTIAL_FIELDS = ("email", "password", "company_id")


def default_config_path() -> Path:
    """
    Resolve where the settings file lives.

    ``$YOUKOSO_CONFIG`` wins; otherwise the file sits next to the entry script
    (or the frozen executable).
    """
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()

    if getattr(sys, 'frozen', False):
        base_dir = Path(sys.executable).parent
    else:
        base_dir = Path(sys.argv[0]).resolve().parent if sys.argv and sys.argv[0] else Path.cwd()
    return base_dir / CONFIG_FILENAME


class ConfigStore:
    """
    Reads and writes the settings document.

    ``load`` never raises: a missing file yields defaults, and an unreadable or
    unparsable file yields defaults plus a ConfigCorrupt stored in
    ``last_error``. ``save`` raises PersistFailed and leaves the previous file
    untouched.

    Attributes:
        path: Default file used when ``load``/``save`` are called without one.
        last_error: ConfigCorrupt from the most recent ``load``, or None.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_config_path()
        self.last_error: Optional[ConfigCorrupt] = None

    # ------------------------------------------------------------------------
    # LOAD
    # ------------------------------------------------------------------------

    def load(self, path: Optional[Path] = None) -> SettingsDocument:
        """
        Load the settings document.

        Args:
            path: File to read; defaults to ``self.path``.

        Returns:
            SettingsDocument: Always a valid document.
        """
        path = Path(path) if path else self.path
        self.last_error = None

        if not path.exists():
            logger.info(f"No existing configuration file found at {path}; using defaults")
            return SettingsDocument()

        logger.info(f"Loading configuration from {path}")
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError, OSError) as e:
            error = ConfigCorrupt(path, e)
            error.__cause__ = e
            self.last_error = error
            logger.error(f"Configuration file is corrupt, falling back to defaults: {e}")
            return SettingsDocument()

        document = document_from_data(data)
        log_config("Loaded Configuration", document.describe(), logger)
        return document

    # ------------------------------------------------------------------------
    # SAVE
    # ------------------------------------------------------------------------

    def save(self, document: SettingsDocument, path: Optional[Path] = None) -> None:
        """
        Persist ``document`` atomically.

        The payload is written to a temporary file in the target directory,
        flushed to disk, and renamed over the target.

        Raises:
            PersistFailed: Serialization or any file-system step failed.
        """
        path = Path(path) if path else self.path
        log_config("Saving Configuration", document.describe(), logger)

        try:
            payload = tomli_w.dumps(document_to_data(document)).encode("utf-8")
        except (TypeError, ValueError) as e:
            # Never include the payload: it may contain the password
            raise PersistFailed(path, e) from e

        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            logger.error(f"Failed to save configuration to {path}: {e}")
            raise PersistFailed(path, e) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning(f"Could not remove temporary file {tmp_name}")

        logger.info(f"Configuration saved successfully to {path}")


# ============================================================================
# SCHEMA MAPPING
# ============================================================================

def document_from_data(data: Dict[str, Any]) -> SettingsDocument:
    """
    Map parsed TOML onto a SettingsDocument, field by field.

    Bad values for a single field fall back to that field's default and are
    logged; they never invalidate the rest of the document.
    """
    document = SettingsDocument()

    version = data.get(SCHEMA_VERSION_KEY, SCHEMA_VERSION)
    if isinstance(version, int) and version > SCHEMA_VERSION:
        logger.warning(
            f"Configuration schema version {version} is newer than supported "
            f"version {SCHEMA_VERSION}; loading known fields only"
        )

    if THEME_KEY in data:
        try:
            document.theme = Theme.parse(data[THEME_KEY])
        except ValueError:
            logger.warning(f"Ignoring unknown theme {data[THEME_KEY]!r}; using {DEFAULT_THEME.value}")

    if MY_STUDIO_TABLE in data:
        document.studio_credentials = _credential_from_table(data[MY_STUDIO_TABLE])

    known = {SCHEMA_VERSION_KEY, THEME_KEY, MY_STUDIO_TABLE}
    document.extra = {k: v for k, v in data.items() if k not in known}
    if document.extra:
        logger.debug(f"Preserving unknown configuration keys: {sorted(document.extra)}")

    return document


def document_to_data(document: SettingsDocument) -> Dict[str, Any]:
    """Inverse of ``document_from_data``; the only place a password is revealed for disk."""
    data: Dict[str, Any] = dict(document.extra)
    data[SCHEMA_VERSION_KEY] = SCHEMA_VERSION
    data[THEME_KEY] = document.theme.value

    credential = document.studio_credentials
    if credential is not None:
        data[MY_STUDIO_TABLE] = {
            "email": credential.email,
            "password": credential.password.reveal(),
            "company_id": credential.company_id,
        }
    else:
        data.pop(MY_STUDIO_TABLE, None)

    return data


def _credential_from_table(table: Any) -> Optional[Credential]:
    if not isinstance(table, dict):
        logger.warning(f"Ignoring [{MY_STUDIO_TABLE}]: expected a table")
        return None

    values = {}
    for name in CREDENTIAL_FIELDS:
        value = table.get(name, "")
        if not isinstance(value, str):
            logger.warning(f"Ignoring non-string value for {MY_STUDIO_TABLE}.{name}")
            value = ""
        values[name] = value

    credential = Credential(**values)
    if credential.is_blank:
        # Empty table as written by first-run defaults of older builds
        return None
    return credential
