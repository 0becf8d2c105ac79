"""Exception types raised while validating, formatting and sending Teams messages."""

from __future__ import annotations


class TeamsSendError(Exception):
    """Base class for every error raised by teams-send."""


class ValidationError(TeamsSendError, ValueError):
    """User supplied settings were rejected before any network activity."""


class WebhookTooShortError(ValidationError):
    pass


class UnrecognizedHostError(ValidationError):
    pass


class PatternMismatchError(ValidationError):
    pass


class EmptyFieldError(ValidationError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field} too short")


class IncompatibleOptionError(ValidationError):
    def __init__(self, option: str, reason: str) -> None:
        self.option = option
        super().__init__(f"unsupported: {option} {reason}")


class ConflictingOutputModeError(ValidationError):
    def __init__(self) -> None:
        super().__init__("unsupported: You cannot have both silent and verbose output")


class TooManyTargetLinksError(ValidationError):
    pass


class InvalidValueError(ValidationError):
    pass


class ParseError(TeamsSendError, ValueError):
    """A repeatable flag value could not be split into its two fields."""


class FormattingError(TeamsSendError, ValueError):
    pass


class EmptyInputError(FormattingError):
    def __init__(self) -> None:
        super().__init__("received empty string, refusing to format")


class MarshalFailureError(FormattingError):
    pass


class DeliveryError(TeamsSendError, RuntimeError):
    """The webhook did not accept the message."""
