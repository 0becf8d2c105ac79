"""Minimal HTTP client that posts message documents to Teams incoming webhooks."""

from __future__ import annotations

import logging
import time
from typing import Optional

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from teams_errors import DeliveryError

# Per-attempt timeout in seconds.
DEFAULT_SEND_TIMEOUT = 5

# Legacy connectors answer with this body when a message is accepted.
EXPECTED_SUCCESS_RESPONSE = "1"

RESPONSE_TEXT_LIMIT = 300


def submission_timeout(retries: int, retries_delay: float, attempt_timeout: float = DEFAULT_SEND_TIMEOUT) -> float:
    """Overall time budget for one delivery including every retry and delay."""

    return attempt_timeout * (retries + 1) + retries_delay * retries


def validate_response(response: requests.Response, ignore_invalid_response: bool = False) -> None:
    """Raise ``DeliveryError`` unless the webhook accepted the message."""

    body = response.text.strip()
    if response.status_code >= 400:
        raise DeliveryError(
            f"Teams webhook returned status {response.status_code}: {body[:RESPONSE_TEXT_LIMIT]}"
        )

    if body != EXPECTED_SUCCESS_RESPONSE and not ignore_invalid_response:
        raise DeliveryError(
            f"unexpected response from Teams webhook (status {response.status_code}); "
            f"got {body[:RESPONSE_TEXT_LIMIT]!r}, expected {EXPECTED_SUCCESS_RESPONSE!r}"
        )


class TeamsClient:
    """Posts message documents to a webhook, retrying failed attempts."""

    def __init__(
        self,
        timeout: float = DEFAULT_SEND_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()
        self.log = logger or logging.getLogger(__name__)

    def __enter__(self) -> "TeamsClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def _post(self, url: str, body: dict, timeout: float) -> requests.Response:
        return self.session.post(
            url,
            json=body,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )

    def send(
        self,
        url: str,
        document,
        retries: int = 0,
        retries_delay: float = 0,
        ignore_invalid_response: bool = False,
    ) -> None:
        """Post ``document`` to ``url``, making up to ``retries + 1`` attempts.

        The whole exchange, delays included, is bounded by
        :func:`submission_timeout`. The last failure is raised as a
        ``DeliveryError``.
        """

        body = document.to_dict()
        attempts = retries + 1
        budget = submission_timeout(retries, retries_delay, self.timeout)
        deadline = time.monotonic() + budget
        self.log.debug("Sending message with %d attempt(s) within %.1fs", attempts, budget)

        retrying = Retrying(
            stop=stop_after_attempt(attempts) | stop_after_delay(budget),
            wait=wait_fixed(retries_delay),
            retry=retry_if_exception_type((requests.RequestException, DeliveryError)),
            before_sleep=before_sleep_log(self.log, logging.DEBUG),
            reraise=True,
        )

        try:
            for attempt in retrying:
                with attempt:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise DeliveryError(f"timeout of {budget:.1f}s exceeded")
                    response = self._post(url, body, min(self.timeout, remaining))
                    validate_response(response, ignore_invalid_response)
        except requests.RequestException as exc:
            made = retrying.statistics.get("attempt_number", attempts)
            raise DeliveryError(f"failed to submit message after {made} attempt(s): {exc}") from exc

        self.log.debug("Message accepted after %d attempt(s)", retrying.statistics.get("attempt_number", 1))
