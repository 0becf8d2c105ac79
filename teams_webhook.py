"""Validation of Microsoft Teams incoming webhook URLs."""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urlparse

from teams_errors import PatternMismatchError, UnrecognizedHostError, WebhookTooShortError

# New webhook URLs use the outlook.office.com FQDN, but older guides and the
# official connector docs still show outlook.office365.com.
WEBHOOK_URL_OFFICECOM_PREFIX = "https://outlook.office.com"
WEBHOOK_URL_OFFICE365_PREFIX = "https://outlook.office365.com"
WEBHOOK_URL_PREFIXES = (WEBHOOK_URL_OFFICECOM_PREFIX, WEBHOOK_URL_OFFICE365_PREFIX)

WEBHOOK_URL_SAMPLE_PATH = (
    "webhook/a1269812-6d10-44b1-abc5-b84f93580ba0@9e7b80c7-d1eb-4b52-8582-76f921e416d9"
    "/IncomingWebhook/3fdd6767bae44ac58e5995547d66a4e4/f332c8d9-3397-4ac5-957b-b8e3fc465a8c"
)

# Mixed case GUIDs are accepted by the service, so the pattern allows them too.
VALID_WEBHOOK_URL_PATTERN = re.compile(
    r"^https://outlook\.office(?:365)?\.com/webhook/[-a-zA-Z0-9]{36}@[-a-zA-Z0-9]{36}"
    r"/IncomingWebhook/[-a-zA-Z0-9]{32}/[-a-zA-Z0-9]{36}$"
)


def _validate_length(url: str) -> None:
    # Compare against the shorter of the two accepted prefixes.
    if len(url) <= len(WEBHOOK_URL_OFFICECOM_PREFIX):
        raise WebhookTooShortError(
            f"incomplete webhook URL: provided URL {url!r} shorter than or equal to "
            f"just the {WEBHOOK_URL_OFFICECOM_PREFIX!r} URL prefix"
        )


def _validate_prefix(url: str) -> None:
    if url.startswith(WEBHOOK_URL_PREFIXES):
        return

    try:
        parsed = urlparse(url)
    except ValueError as exc:
        raise UnrecognizedHostError(f"unable to parse webhook URL {url!r}: {exc}") from exc

    provided_prefix = f"{parsed.scheme}://{parsed.netloc}"
    raise UnrecognizedHostError(
        f"webhook URL does not contain expected prefix; got {provided_prefix!r}, "
        f"expected one of {WEBHOOK_URL_OFFICECOM_PREFIX!r} or {WEBHOOK_URL_OFFICE365_PREFIX!r}"
    )


def _validate_pattern(url: str) -> None:
    if VALID_WEBHOOK_URL_PATTERN.fullmatch(url):
        return

    raise PatternMismatchError(
        "webhook URL does not match expected pattern;\n"
        f"got: {url!r}\n"
        "expected webhook URL in one of these formats:\n"
        f"  * {WEBHOOK_URL_OFFICECOM_PREFIX}/{WEBHOOK_URL_SAMPLE_PATH}\n"
        f"  * {WEBHOOK_URL_OFFICE365_PREFIX}/{WEBHOOK_URL_SAMPLE_PATH}"
    )


def validate_webhook(url: str, logger: Optional[logging.Logger] = None) -> None:
    """Check a webhook URL, raising a ``ValidationError`` on the first problem.

    The checks are ordered so that a truncated URL, a URL for the wrong host
    and a correctly hosted URL with a malformed path each produce a distinct
    error.
    """

    log = logger or logging.getLogger(__name__)

    _validate_length(url)
    _validate_prefix(url)
    _validate_pattern(url)

    log.debug("Webhook URL %s passed validation", url)


def validate_webhook_target(
    target,
    skip_validation: bool = False,
    logger: Optional[logging.Logger] = None,
) -> str:
    """Validate the URL of a ``WebhookTarget`` unless validation is disabled.

    Returns the URL unchanged so callers can use it directly.
    """

    log = logger or logging.getLogger(__name__)
    if skip_validation:
        log.debug("Webhook URL validation disabled; using %s as-is", target.url)
        return target.url

    validate_webhook(target.url, logger=log)
    return target.url
