"""Tests for Telegram alerts."""

from unittest.mock import MagicMock

import pytest
import requests

import constants
from Alerts import telegram_alert


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(constants, "TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setattr(constants, "TELEGRAM_CHAT_ID", "42")


def test_disabled_without_credentials(monkeypatch):
    monkeypatch.setattr(constants, "TELEGRAM_BOT_TOKEN", "")
    post = MagicMock()
    monkeypatch.setattr(telegram_alert.requests, "post", post)
    assert telegram_alert.send_alert("hello") is False
    post.assert_not_called()


def test_sends_message(configured, monkeypatch):
    post = MagicMock(return_value=MagicMock(status_code=200))
    monkeypatch.setattr(telegram_alert.requests, "post", post)
    assert telegram_alert.send_alert("Ambulance at West") is True
    args, kwargs = post.call_args
    assert args[0] == "https://api.telegram.org/bot123:abc/sendMessage"
    assert kwargs["json"] == {"chat_id": "42", "text": "Ambulance at West"}
    assert kwargs["timeout"] == constants.TELEGRAM_TIMEOUT


def test_rejected_message(configured, monkeypatch):
    post = MagicMock(return_value=MagicMock(status_code=401, text="Unauthorized"))
    monkeypatch.setattr(telegram_alert.requests, "post", post)
    assert telegram_alert.send_alert("x") is False


def test_network_error_is_swallowed(configured, monkeypatch):
    monkeypatch.setattr(telegram_alert.requests, "post",
                        MagicMock(side_effect=requests.Timeout("slow")))
    assert telegram_alert.send_alert("x") is False
