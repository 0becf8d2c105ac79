"""Tests for the delivery invoker and the command-line entry point."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from teams_card import MessageCard
from teams_client import TeamsClient
from teams_config import Config
from teams_errors import DeliveryError
from teams_send import DeliveryOutcome, main, report_outcome, send_message


@pytest.fixture
def card() -> MessageCard:
    return MessageCard(title="Test", theme_color="#832561")


@pytest.fixture
def argv(webhook_url):
    return ["--team", "Ops", "--channel", "Alerts", "--url", webhook_url, "--title", "Test", "--message", "Hello"]


def test_outcome_exit_codes():
    assert DeliveryOutcome(success=True).exit_code == 0
    assert DeliveryOutcome(success=False, error_detail="boom").exit_code == 1


def test_send_message_success(card, webhook_url):
    client = MagicMock(spec=TeamsClient)
    client.timeout = 5

    outcome = send_message(webhook_url, card, retries=1, retries_delay=2, client=client)

    assert outcome == DeliveryOutcome(success=True)
    client.send.assert_called_once_with(
        webhook_url, card, retries=1, retries_delay=2, ignore_invalid_response=False
    )
    client.close.assert_not_called()


def test_send_message_failure(card, webhook_url):
    client = MagicMock(spec=TeamsClient)
    client.timeout = 5
    client.send.side_effect = DeliveryError("status 500")

    outcome = send_message(webhook_url, card, retries=0, retries_delay=0, client=client)

    assert outcome.success is False
    assert outcome.error_detail == "status 500"
    assert outcome.exit_code == 1


def test_report_success(capsys):
    report_outcome(DeliveryOutcome(success=True), Config())

    assert "Message successfully sent!" in capsys.readouterr().out


def test_report_failure_verbose(capsys):
    config = Config(team="Ops", channel="Alerts", verbose_output=True)

    report_outcome(DeliveryOutcome(success=False, error_detail="boom"), config)

    err = capsys.readouterr().err
    assert "Failed to submit message to 'Alerts' channel in the 'Ops' team: boom" in err
    assert "[Config]:" in err


def test_report_silent(capsys):
    report_outcome(DeliveryOutcome(success=False, error_detail="boom"), Config(silent_output=True))

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_main_version_exits_zero(capsys):
    with patch("teams_send.send_message") as send:
        assert main(["--version"]) == 0

    send.assert_not_called()
    assert "teams-send" in capsys.readouterr().out


def test_main_success(argv, capsys):
    with patch("teams_send.send_message", return_value=DeliveryOutcome(success=True)) as send:
        assert main(argv) == 0

    document = send.call_args.args[1]
    assert document.to_dict()["title"] == "Test"
    assert send.call_args.kwargs["retries"] == 2
    assert "Message successfully sent!" in capsys.readouterr().out


def test_main_delivery_failure(argv):
    with patch("teams_send.send_message", return_value=DeliveryOutcome(success=False, error_detail="x")):
        assert main(argv + ["--silent"]) == 1


def test_main_validation_failure_skips_delivery(argv, capsys):
    with patch("teams_send.send_message") as send:
        assert main(argv + ["--silent", "--verbose"]) == 1

    send.assert_not_called()
    err = capsys.readouterr().err
    assert "usage:" in err
    assert "silent and verbose" in err


def test_main_mention_with_target_url_fails(webhook_url, capsys):
    args = [
        "--team", "Ops",
        "--channel", "Alerts",
        "--url", webhook_url,
        "--message", "Hello",
        "--user-mention", "Jane,jane@example.com",
        "--target-url", "https://ci.example.com,Job",
    ]

    with patch("teams_send.send_message") as send:
        assert main(args) == 1

    send.assert_not_called()
    assert "--target-url" in capsys.readouterr().err


def test_main_posts_over_http(argv):
    session = MagicMock()
    session.post.return_value = MagicMock(status_code=200, text="1")

    with patch("teams_client.requests.Session", return_value=session):
        assert main(argv + ["--convert-eol", "--sender", "nagios"]) == 0

    body = session.post.call_args.kwargs["json"]
    assert body["title"] == "Test"
    assert "on behalf of nagios" in body["sections"][-1]["text"]
    session.close.assert_called_once()
