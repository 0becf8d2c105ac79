"""Text helpers for Teams message content: newline conversion and code formatting."""

from __future__ import annotations

import json
import logging
from typing import Optional

from teams_errors import EmptyInputError, FormattingError, MarshalFailureError

# Teams renders this as a line break in MessageCard text.
BREAK_STATEMENT = "<br>"

# Windows first so that \r\n is not consumed piecemeal by the Mac and Unix passes.
EOL_SEQUENCES = (
    "\r\n",
    "\\r\\n",
    "\r",
    "\\r",
    "\n",
    "\\n",
)

# The leading/trailing newlines keep the fence on its own line in renderers
# that honour them; Teams itself ignores the extra newlines.
CODE_BLOCK_PREFIX = "\n```\n"
CODE_BLOCK_SUFFIX = "```\n"
CODE_SNIPPET_PREFIX = "`"
CODE_SNIPPET_SUFFIX = "`"


def convert_eol_to_break(text: str) -> str:
    """Convert Windows, Mac and Unix newlines (literal or escaped) into ``<br>``."""

    for sequence in EOL_SEQUENCES:
        text = text.replace(sequence, BREAK_STATEMENT)
    return text


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def _is_json(text: str) -> bool:
    try:
        json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return False
    return True


def _indent_json(text: str, indent: str = "\t") -> str:
    """Re-indent valid JSON text token by token, leaving every value as written."""

    out = []
    depth = 0
    in_string = False
    escaped = False
    need_indent = False

    for char in text:
        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char in " \t\r\n":
            continue

        pending, need_indent = need_indent, False
        if char in "}]":
            depth -= 1
            # Empty containers stay on one line.
            if not pending:
                out.append("\n" + indent * depth)
            out.append(char)
            continue

        if pending:
            out.append("\n" + indent * depth)

        if char in "{[":
            depth += 1
            need_indent = True
        elif char == ",":
            need_indent = True
        elif char == ":":
            out.append(": ")
            continue
        elif char == '"':
            in_string = True
        out.append(char)

    return "".join(out)


def _pretty_json(text: str) -> str:
    if _is_json(text):
        return _indent_json(text)

    try:
        return json.dumps(text, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise MarshalFailureError(f"unable to encode {text!r} as JSON: {exc}") from exc


def _format_as_code(text: str, prefix: str, suffix: str, logger: logging.Logger) -> str:
    if not text:
        raise EmptyInputError()

    formatted = _pretty_json(text)
    logger.debug("Formatted JSON: %s", formatted)

    # Plain strings come back wrapped in quotes from the JSON encoding step.
    if len(formatted) >= 2 and formatted[0] == '"' and formatted[-1] == '"':
        formatted = formatted[1:-1]

    return f"{prefix}{formatted}{suffix}"


def format_as_code_block(text: str, logger: Optional[logging.Logger] = None) -> str:
    """Format text, JSON or not, as a Markdown code block for Teams."""

    return _format_as_code(
        text,
        CODE_BLOCK_PREFIX,
        CODE_BLOCK_SUFFIX,
        logger or logging.getLogger(__name__),
    )


def format_as_code_snippet(text: str, logger: Optional[logging.Logger] = None) -> str:
    """Format text as a single-line Markdown code span for Teams."""

    return _format_as_code(
        text,
        CODE_SNIPPET_PREFIX,
        CODE_SNIPPET_SUFFIX,
        logger or logging.getLogger(__name__),
    )


def try_format_as_code_block(text: str, logger: Optional[logging.Logger] = None) -> str:
    """Like :func:`format_as_code_block` but returns ``text`` unchanged on failure."""

    log = logger or logging.getLogger(__name__)
    try:
        return format_as_code_block(text, logger=log)
    except FormattingError as exc:
        log.debug("Unable to format as code block (%s); using original text", exc)
        return text


def try_format_as_code_snippet(text: str, logger: Optional[logging.Logger] = None) -> str:
    """Like :func:`format_as_code_snippet` but returns ``text`` unchanged on failure."""

    log = logger or logging.getLogger(__name__)
    try:
        return format_as_code_snippet(text, logger=log)
    except FormattingError as exc:
        log.debug("Unable to format as code snippet (%s); using original text", exc)
        return text
