#!/usr/bin/env python3
"""Send a message to Microsoft Teams via incoming webhook."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from teams_card import CardDocument, build_card
from teams_client import DEFAULT_SEND_TIMEOUT, TeamsClient, submission_timeout
from teams_config import APP_INFO, APP_NAME, Config, branding, build_parser, validate_config
from teams_errors import DeliveryError, ValidationError

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s %(message)s"


@dataclass(frozen=True)
class DeliveryOutcome:
    success: bool
    error_detail: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


def configure_logging(config: Config) -> logging.Logger:
    """Return the logger used for diagnostics, tuned to the output mode."""

    logger = logging.getLogger(APP_NAME)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.handlers = [handler]
    logger.propagate = False

    if config.silent_output:
        logger.setLevel(logging.CRITICAL + 1)
    elif config.verbose_output:
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.WARNING)
    return logger


def send_message(
    webhook_url: str,
    document: CardDocument,
    retries: int,
    retries_delay: int,
    ignore_invalid_response: bool = False,
    client: Optional[TeamsClient] = None,
    logger: Optional[logging.Logger] = None,
) -> DeliveryOutcome:
    """Hand a built document to the webhook client and record the result."""

    log = logger or logging.getLogger(__name__)
    log.debug(
        "Submitting message; timeout budget %.1fs",
        submission_timeout(retries, retries_delay, client.timeout if client else DEFAULT_SEND_TIMEOUT),
    )

    owned_client = client is None
    client = client or TeamsClient(logger=log)
    try:
        client.send(
            webhook_url,
            document,
            retries=retries,
            retries_delay=retries_delay,
            ignore_invalid_response=ignore_invalid_response,
        )
    except DeliveryError as exc:
        log.debug("Delivery failed: %s", exc)
        return DeliveryOutcome(success=False, error_detail=str(exc))
    finally:
        if owned_client:
            client.close()

    return DeliveryOutcome(success=True)


def report_outcome(outcome: DeliveryOutcome, config: Config) -> None:
    if config.silent_output:
        return

    if outcome.success:
        print("Message successfully sent!")
        return

    print(
        f"\n\nERROR: Failed to submit message to {config.channel!r} channel in the "
        f"{config.team!r} team: {outcome.error_detail}\n",
        file=sys.stderr,
    )
    if config.verbose_output:
        print(f"[Config]: {config}\n[Error]: {outcome.error_detail}", file=sys.stderr)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = Config.from_args(args)

    if config.show_version:
        print(branding())
        return 0

    logger = configure_logging(config)

    try:
        validate_config(config, logger=logger)
    except ValidationError as exc:
        parser.print_usage(sys.stderr)
        print(f"{APP_NAME}: error: {exc}", file=sys.stderr)
        return 1

    if config.verbose_output:
        logger.info("Configuration: %s", config)

    document = build_card(config.payload, APP_INFO, convert_eol=config.convert_eol, logger=logger)

    outcome = send_message(
        config.webhook_url,
        document,
        retries=config.retries,
        retries_delay=config.retries_delay,
        ignore_invalid_response=config.ignore_invalid_response,
        logger=logger,
    )
    report_outcome(outcome, config)
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
