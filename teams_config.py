"""Command-line configuration and message validation for teams-send."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, TypeVar
from urllib.parse import urlparse

from teams_card import (
    DEFAULT_THEME_COLOR,
    MAX_TARGET_LINKS,
    AppInfo,
    Mention,
    MessagePayload,
    TargetLink,
)
from teams_errors import (
    ConflictingOutputModeError,
    EmptyFieldError,
    IncompatibleOptionError,
    InvalidValueError,
    ParseError,
    TooManyTargetLinksError,
)
from teams_webhook import validate_webhook_target

__version__ = "0.1.0"

APP_NAME = "teams-send"
APP_URL = "https://github.com/atc0005/send2teams"
APP_INFO = AppInfo(name=APP_NAME, version=__version__, url=APP_URL)

TEAMS_WEBHOOK_ENV = "TEAMS_WEBHOOK_URL"
DISABLE_WEBHOOK_VALIDATION_ENV = "TEAMS_DISABLE_WEBHOOK_VALIDATION"

DEFAULT_RETRIES = 2
DEFAULT_RETRIES_DELAY = 2

T = TypeVar("T")


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class WebhookTarget:
    """Destination of a message.

    ``team`` and ``channel`` are only used in local output; the remote
    endpoint never receives them.
    """

    team: str
    channel: str
    url: str


@dataclass
class Config:
    team: str = ""
    channel: str = ""
    webhook_url: str = ""
    theme_color: str = DEFAULT_THEME_COLOR
    title: str = ""
    message: str = ""
    sender: Optional[str] = None
    target_links: List[TargetLink] = field(default_factory=list)
    mentions: List[Mention] = field(default_factory=list)
    code_blocks: List[str] = field(default_factory=list)
    convert_eol: bool = False
    silent_output: bool = False
    verbose_output: bool = False
    disable_webhook_validation: bool = False
    ignore_invalid_response: bool = False
    retries: int = DEFAULT_RETRIES
    retries_delay: int = DEFAULT_RETRIES_DELAY
    show_version: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "Config":
        return cls(
            team=args.team,
            channel=args.channel,
            webhook_url=(args.url or "").strip(),
            theme_color=args.color,
            title=args.title,
            message=args.message,
            sender=args.sender or None,
            target_links=list(args.target_urls or []),
            mentions=list(args.user_mentions or []),
            code_blocks=list(args.code_blocks or []),
            convert_eol=args.convert_eol,
            silent_output=args.silent,
            verbose_output=args.verbose,
            disable_webhook_validation=args.disable_webhook_validation,
            ignore_invalid_response=args.ignore_invalid_response,
            retries=args.retries,
            retries_delay=args.retries_delay,
            show_version=args.show_version,
        )

    @property
    def target(self) -> WebhookTarget:
        return WebhookTarget(team=self.team, channel=self.channel, url=self.webhook_url)

    @property
    def payload(self) -> MessagePayload:
        return MessagePayload(
            body_text=self.message,
            title=self.title,
            theme_color=self.theme_color,
            sender=self.sender,
            target_links=list(self.target_links),
            mentions=list(self.mentions),
            code_blocks=list(self.code_blocks),
        )

    def __str__(self) -> str:
        return (
            f"Team={self.team!r}, Channel={self.channel!r}, WebhookURL={self.webhook_url!r}, "
            f"ThemeColor={self.theme_color!r}, MessageTitle={self.title!r}, "
            f"MessageText={self.message!r}, Sender={self.sender!r}, "
            f"TargetURLs={len(self.target_links)}, UserMentions={len(self.mentions)}, "
            f"Retries={self.retries}, RetriesDelay={self.retries_delay}"
        )


def branding() -> str:
    return f"\n{APP_NAME} {__version__}\n{APP_URL}\n"


def _split_pair(raw: str, expected: str) -> List[str]:
    fields = [item.strip() for item in raw.split(",")]
    if len(fields) != 2 or not all(fields):
        raise ParseError(f"invalid value {raw!r}; expected {expected}")
    return fields


def parse_target_url(raw: str) -> TargetLink:
    """Parse one ``url,label`` occurrence of the --target-url flag."""

    url, label = _split_pair(raw, "comma-separated 'url,label' pair")
    if urlparse(url).scheme not in {"http", "https"}:
        raise ParseError(f"invalid target URL {url!r}; expected an http or https URL")
    return TargetLink(url=url, label=label)


def parse_user_mention(raw: str) -> Mention:
    """Parse one ``name,id`` occurrence of the --user-mention flag."""

    name, user_id = _split_pair(raw, "comma-separated 'name,id' pair")
    return Mention(name=name, user_id=user_id)


def _flag_type(parser: Callable[[str], T]) -> Callable[[str], T]:
    def convert(raw: str) -> T:
        try:
            return parser(raw)
        except ParseError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from exc

    convert.__name__ = parser.__name__
    return convert


def _add_flag(parser: argparse.ArgumentParser, name: str, **kwargs) -> None:
    # Accept both --name and the single-dash -name form used by existing scripts.
    parser.add_argument(f"--{name}", f"-{name}", **kwargs)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Submit a message to a Microsoft Teams channel via an incoming webhook.",
        allow_abbrev=False,
    )
    _add_flag(parser, "team", default="", help="The name of the Team containing our target channel.")
    _add_flag(parser, "channel", default="", help="The target channel where we will send a message.")
    _add_flag(
        parser,
        "url",
        default=os.getenv(TEAMS_WEBHOOK_ENV, ""),
        help=f"The Webhook URL provided by a preconfigured Connector. Defaults to {TEAMS_WEBHOOK_ENV} env.",
    )
    _add_flag(
        parser,
        "color",
        default=DEFAULT_THEME_COLOR,
        help="The hex color code used to set the desired trim color on submitted messages (default: %(default)s).",
    )
    _add_flag(parser, "title", default="", help="The title for the message to submit.")
    _add_flag(
        parser,
        "message",
        default="",
        help=(
            "The message to submit. This message may be provided in Markdown format. "
            "Use --message=TEXT when TEXT starts with a dash."
        ),
    )
    _add_flag(
        parser,
        "sender",
        default="",
        help="The (optional) sender name noted in the message trailer.",
    )
    _add_flag(
        parser,
        "target-url",
        dest="target_urls",
        action="append",
        type=_flag_type(parse_target_url),
        metavar="URL,LABEL",
        help=f"A URL and label pair shown as a button on the message. May be repeated up to {MAX_TARGET_LINKS} times.",
    )
    _add_flag(
        parser,
        "user-mention",
        dest="user_mentions",
        action="append",
        type=_flag_type(parse_user_mention),
        metavar="NAME,ID",
        help="A display name and user ID (e.g. email address) to mention. May be repeated.",
    )
    _add_flag(
        parser,
        "code-block",
        dest="code_blocks",
        action="append",
        metavar="TEXT",
        help="Text (or JSON) shown as a formatted code block section. May be repeated.",
    )
    _add_flag(
        parser,
        "convert-eol",
        action="store_true",
        help="Whether messages with Windows, Mac and Linux newlines are updated to use break statements before message submission.",
    )
    _add_flag(
        parser,
        "silent",
        action="store_true",
        help="Whether ANY output should be shown after message submission success or failure.",
    )
    _add_flag(
        parser,
        "verbose",
        action="store_true",
        help="Whether detailed output should be shown after message submission success or failure.",
    )
    _add_flag(
        parser,
        "disable-webhook-validation",
        action="store_true",
        default=_env_flag(DISABLE_WEBHOOK_VALIDATION_ENV, False),
        help=f"Whether webhook URL validation should be skipped (or set {DISABLE_WEBHOOK_VALIDATION_ENV}=true).",
    )
    _add_flag(
        parser,
        "ignore-invalid-response",
        action="store_true",
        help="Whether an unexpected response body from the webhook should be treated as success.",
    )
    _add_flag(
        parser,
        "retries",
        type=int,
        default=DEFAULT_RETRIES,
        help="The number of attempts that this application will make to deliver messages before giving up (default: %(default)s).",
    )
    _add_flag(
        parser,
        "retries-delay",
        type=int,
        default=DEFAULT_RETRIES_DELAY,
        help="The number of seconds that this application will wait before making another delivery attempt (default: %(default)s).",
    )
    _add_flag(
        parser,
        "version",
        dest="show_version",
        action="store_true",
        help="Whether to display application version and then immediately exit application.",
    )
    return parser


def parse_config(argv: Optional[Sequence[str]] = None) -> Config:
    return Config.from_args(build_parser().parse_args(argv))


def _validate_message(payload: MessagePayload) -> None:
    # Expected pattern: #832561
    if len(payload.theme_color) < len(DEFAULT_THEME_COLOR):
        raise InvalidValueError(
            f"provided message theme color too short; got {payload.theme_color!r} of length "
            f"{len(payload.theme_color)}, expected length of {len(DEFAULT_THEME_COLOR)}"
        )

    if not payload.body_text:
        raise EmptyFieldError("message content")

    if not payload.mention_mode:
        if not payload.title:
            raise EmptyFieldError("message title")
        if len(payload.target_links) > MAX_TARGET_LINKS:
            raise TooManyTargetLinksError(
                f"{len(payload.target_links)} target URLs specified, maximum of {MAX_TARGET_LINKS} supported"
            )
        return

    # User mentions are sent as an Adaptive Card, which has no equivalent of
    # the MessageCard title, trim color or OpenUri actions.
    if payload.target_links:
        raise IncompatibleOptionError("--target-url", "cannot be combined with user mentions")
    if payload.title:
        raise IncompatibleOptionError("--title", "cannot be combined with user mentions")
    if payload.code_blocks:
        raise IncompatibleOptionError("--code-block", "cannot be combined with user mentions")
    if payload.theme_color != DEFAULT_THEME_COLOR:
        raise IncompatibleOptionError("--color", "cannot be combined with user mentions")


def validate_config(config: Config, logger: Optional[logging.Logger] = None) -> None:
    """Verify all settings have acceptable values, raising on the first problem."""

    log = logger or logging.getLogger(__name__)

    if config.silent_output and config.verbose_output:
        raise ConflictingOutputModeError()

    _validate_message(config.payload)

    if not config.team:
        raise EmptyFieldError("team name")

    if not config.channel:
        raise EmptyFieldError("channel name")

    if config.retries < 0:
        raise InvalidValueError(f"retries too short; got {config.retries}, expected 0 or more")

    if config.retries_delay < 0:
        raise InvalidValueError(f"retries delay too short; got {config.retries_delay}, expected 0 or more")

    validate_webhook_target(config.target, skip_validation=config.disable_webhook_validation, logger=log)

    log.debug("Configuration validated")
