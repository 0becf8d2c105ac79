"""Shared fixtures for teams-send tests."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

WEBHOOK_PATH = (
    "/webhook/a1269812-6d10-44b1-abc5-b84f93580ba0@9e7b80c7-d1eb-4b52-8582-76f921e416d9"
    "/IncomingWebhook/3fdd6767bae44ac58e5995547d66a4e4/f332c8d9-3397-4ac5-957b-b8e3fc465a8c"
)


@pytest.fixture
def webhook_url() -> str:
    return "https://outlook.office.com" + WEBHOOK_PATH


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TEAMS_WEBHOOK_URL", raising=False)
    monkeypatch.delenv("TEAMS_DISABLE_WEBHOOK_VALIDATION", raising=False)


def make_response(status_code: int = 200, text: str = "1") -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    return response


@pytest.fixture
def mock_session() -> MagicMock:
    session = MagicMock(spec=requests.Session)
    session.post.return_value = make_response()
    return session
