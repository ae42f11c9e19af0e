"""
Unit tests for credential masking in the logging layer.
"""

import logging

from youkoso.core.credentials import Secret
from youkoso.utils.logger import (
    SensitiveDataFilter,
    mask_sensitive_data,
    mask_string,
    setup_logging,
    shutdown_logging,
)


def test_sensitive_keys_masked_recursively():
    data = {
        "email": "me@studio.com",
        "password": "hunter2",
        "nested": {"Authorization": "Bearer abc", "items": [{"api_key": "k"}]},
    }
    masked = mask_sensitive_data(data)
    assert masked["email"] == "me@studio.com"
    assert masked["password"] == "***"
    assert masked["nested"]["Authorization"] == "***"
    assert masked["nested"]["items"][0]["api_key"] == "***"
    assert data["password"] == "hunter2"


def test_extra_fields_masked_for_one_call():
    assert mask_sensitive_data({"msg": "token"}, extra_fields=("msg",)) == {"msg": "***"}
    assert mask_sensitive_data({"msg": "hello"}) == {"msg": "hello"}


def test_secret_values_always_masked():
    assert mask_sensitive_data([Secret("hunter2")]) == ["***"]


def test_patterns_in_free_text():
    assert "abc.def" not in mask_string("Authorization: Bearer abc.def")
    assert "hunter2" not in mask_string('{"password": "hunter2"}')
    assert "hunter2" not in mask_string("password=hunter2 user=me")


def test_filter_masks_message_and_args():
    record = logging.LogRecord(
        "test", logging.INFO, __file__, 1, "login %s password=hunter2", ({"password": "pw"},), None
    )
    assert SensitiveDataFilter().filter(record) is True
    message = record.getMessage()
    assert "hunter2" not in message
    assert "'pw'" not in message


def test_setup_logging_writes_masked_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        log_file = setup_logging(log_dir=tmp_path)
        logging.getLogger("youkoso.test").info("sending password=hunter2")
        shutdown_logging()
        text = log_file.read_text(encoding="utf-8")
        assert "sending password=***" in text
        assert "hunter2" not in text
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
