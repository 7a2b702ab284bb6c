"""
Body logging is opt-in and keys never reach the log records in clear.
"""
import logging
from logging.handlers import RotatingFileHandler

import httpx
import pytest

from gemini_relay.core.config import Settings
from gemini_relay.main import configure_logging

GENERATE_PATH = "/v1beta/models/gemini-1.5-pro:generateContent"
SECRET_KEY = "AIzaSy-secret-client-key-0001"
PROMPT = "tell me a secret story"
REPLY = "once upon a time"


@pytest.fixture
def reply(upstream):
    upstream.handler = lambda request: httpx.Response(
        200, json={"candidates": [{"content": {"parts": [{"text": REPLY}]}}]}
    )


def _relay(client):
    return client.post(
        GENERATE_PATH,
        json={"contents": [{"role": "user", "parts": [{"text": PROMPT}]}]},
        headers={"x-goog-api-key": SECRET_KEY},
    )


def test_bodies_not_logged_by_default(make_client, reply, caplog):
    caplog.set_level(logging.DEBUG, logger="gemini_relay")
    client = make_client()

    response = _relay(client)

    assert response.status_code == 200
    assert "gemini-1.5-pro" in caplog.text
    assert PROMPT not in caplog.text
    assert REPLY not in caplog.text


def test_bodies_logged_when_enabled(make_client, reply, caplog):
    caplog.set_level(logging.DEBUG, logger="gemini_relay")
    client = make_client(log_bodies=True)

    response = _relay(client)

    assert response.status_code == 200
    body_records = [record for record in caplog.records if record.levelno == logging.DEBUG]
    assert any(PROMPT in record.getMessage() for record in body_records)
    assert any(REPLY in record.getMessage() for record in body_records)


@pytest.mark.parametrize("log_bodies", [False, True])
def test_raw_key_never_logged(make_client, reply, caplog, log_bodies):
    caplog.set_level(logging.DEBUG)
    client = make_client(log_bodies=log_bodies)

    response = _relay(client)

    assert response.status_code == 200
    assert "AIza...0001" in caplog.text
    assert all(SECRET_KEY not in record.getMessage() for record in caplog.records)


def test_pool_keys_never_logged(make_client, reply, caplog):
    caplog.set_level(logging.DEBUG)
    client = make_client(gate_key=SECRET_KEY, upstream_keys=("pool-key-aaaa-1111",), log_bodies=True)

    response = _relay(client)

    assert response.status_code == 200
    assert all(SECRET_KEY not in record.getMessage() for record in caplog.records)
    assert all("pool-key-aaaa-1111" not in record.getMessage() for record in caplog.records)


def test_configure_logging_is_idempotent(tmp_path):
    log_file = tmp_path / "relay.log"
    settings = Settings(log_file=str(log_file), log_bodies=True)
    root = logging.getLogger()

    configure_logging(settings)
    configure_logging(settings)

    file_handlers = [
        handler for handler in root.handlers
        if isinstance(handler, RotatingFileHandler) and handler.baseFilename == str(log_file)
    ]
    try:
        assert len(file_handlers) == 1
        assert "%(name)s" in file_handlers[0].formatter._fmt
        assert logging.getLogger("gemini_relay").getEffectiveLevel() == logging.DEBUG
    finally:
        for handler in file_handlers:
            root.removeHandler(handler)
            handler.close()
