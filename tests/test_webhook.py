"""Tests for webhook URL validation."""

from __future__ import annotations

import pytest

from conftest import WEBHOOK_PATH
from teams_config import WebhookTarget
from teams_errors import PatternMismatchError, UnrecognizedHostError, ValidationError, WebhookTooShortError
from teams_webhook import validate_webhook, validate_webhook_target


@pytest.mark.parametrize(
    "url",
    [
        "",
        "https://",
        "https://outlook.office.co",
        "https://outlook.office.com",
    ],
)
def test_too_short(url):
    with pytest.raises(WebhookTooShortError):
        validate_webhook(url)


@pytest.mark.parametrize(
    "url",
    [
        "http://outlook.office.com" + WEBHOOK_PATH,
        "https://example.com/webhook/some/long/path/here",
        "https://contoso.webhook.office.com" + WEBHOOK_PATH,
    ],
)
def test_unrecognized_host(url):
    with pytest.raises(UnrecognizedHostError):
        validate_webhook(url)


def test_unrecognized_host_reports_parsed_prefix():
    with pytest.raises(UnrecognizedHostError) as excinfo:
        validate_webhook("https://example.com/webhook/some/long/path/here")

    assert "'https://example.com'" in str(excinfo.value)


@pytest.mark.parametrize("prefix", ["https://outlook.office.com", "https://outlook.office365.com"])
def test_valid_urls(prefix):
    validate_webhook(prefix + WEBHOOK_PATH)


def test_mixed_case_ids_are_accepted(webhook_url):
    validate_webhook(webhook_url.replace("a1269812", "A1269812"))


@pytest.mark.parametrize(
    "old, new",
    [
        ("a1269812-", "a126981-"),
        ("9e7b80c7-", "9e7b80c7a-"),
        ("3fdd6767bae44ac58e5995547d66a4e4", "3fdd6767bae44ac58e5995547d66a4e"),
        ("f332c8d9-", "f332c8d9f-"),
    ],
)
def test_segment_length_mismatch(webhook_url, old, new):
    with pytest.raises(PatternMismatchError) as excinfo:
        validate_webhook(webhook_url.replace(old, new))

    assert "expected webhook URL in one of these formats" in str(excinfo.value)


@pytest.mark.parametrize("suffix", ["/extra", "\n", "\r\n"])
def test_trailing_content_rejected(webhook_url, suffix):
    with pytest.raises(PatternMismatchError):
        validate_webhook(webhook_url + suffix)


def test_validation_errors_are_value_errors():
    with pytest.raises(ValueError):
        validate_webhook("")
    assert issubclass(PatternMismatchError, ValidationError)


def test_target_validation_can_be_skipped():
    target = WebhookTarget(team="Ops", channel="Alerts", url="http://localhost:8080/hook")

    assert validate_webhook_target(target, skip_validation=True) == "http://localhost:8080/hook"


def test_target_validation_applies_checks():
    target = WebhookTarget(team="Ops", channel="Alerts", url="http://localhost:8080/hook")

    with pytest.raises(UnrecognizedHostError):
        validate_webhook_target(target)
