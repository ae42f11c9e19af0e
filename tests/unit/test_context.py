"""
Unit tests for AppContext wiring between settings and the session manager.
"""

import tomllib
from unittest.mock import MagicMock

import pytest

from youkoso.core.context import AppContext
from youkoso.core.credentials import Secret
from youkoso.core.session import ApiRequest, Session, SessionState


@pytest.fixture
def transport():
    transport = MagicMock()
    transport.authenticate.side_effect = lambda credential: Session(token=Secret(credential.email))
    transport.call.return_value = {"status": "Success"}
    return transport


@pytest.fixture
def context(tmp_path, transport):
    with AppContext(tmp_path / "config.toml", transport=transport) as context:
        yield context


def test_open_creates_settings_file(context):
    assert context.controller.store.path.exists()
    assert context.controller.corruption is None


def test_credential_change_invalidates_session(context, transport):
    context.controller.update_credentials("a@studio.com", "pw", "1")
    context.sessions.execute(ApiRequest("/getStudents"))
    assert context.sessions.state == SessionState.AUTHENTICATED

    context.controller.update_credentials("b@studio.com", "pw", "1")
    assert context.sessions.state == SessionState.INVALIDATED

    context.sessions.execute(ApiRequest("/getStudents"))
    session = transport.call.call_args[0][0]
    assert session.token.reveal() == "b@studio.com"


def test_saving_same_credential_keeps_session(context):
    context.controller.update_credentials("a@studio.com", "pw", "1")
    context.sessions.test_connection()
    context.controller.update_credentials("a@studio.com", "pw", "1")
    assert context.sessions.is_authenticated


def test_close_persists_and_releases(tmp_path, transport):
    path = tmp_path / "config.toml"
    context = AppContext(path, transport=transport).open()
    context.controller.set_theme("Light")

    context.close()
    context.close()

    transport.close.assert_called_once()
    with open(path, "rb") as f:
        assert tomllib.load(f)["theme"] == "Light"


def test_corrupt_file_still_starts(tmp_path, transport):
    path = tmp_path / "config.toml"
    path.write_text("theme = ", encoding="utf-8")
    with AppContext(path, transport=transport) as context:
        assert context.controller.corruption is not None
        assert path.read_text(encoding="utf-8") == "theme = "
