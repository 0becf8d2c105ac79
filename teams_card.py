"""Message documents posted to Teams and the builder that assembles them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from teams_format import convert_eol_to_break, try_format_as_code_block

DEFAULT_THEME_COLOR = "#832561"

# Teams only renders this many OpenUri actions on a MessageCard.
MAX_TARGET_LINKS = 4

MESSAGE_CARD_CONTEXT = "https://schema.org/extensions"
ADAPTIVE_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"
ADAPTIVE_CARD_SCHEMA = "http://adaptivecards.io/schemas/adaptive-card.json"
ADAPTIVE_CARD_VERSION = "1.2"

TRAILER_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


@dataclass(frozen=True)
class TargetLink:
    url: str
    label: str


@dataclass(frozen=True)
class Mention:
    name: str
    user_id: str

    @property
    def token(self) -> str:
        return f"<at>{self.name}</at>"


@dataclass(frozen=True)
class AppInfo:
    name: str
    version: str
    url: str


@dataclass
class MessagePayload:
    """Message content collected from the command line."""

    body_text: str
    title: str = ""
    theme_color: str = DEFAULT_THEME_COLOR
    sender: Optional[str] = None
    target_links: List[TargetLink] = field(default_factory=list)
    mentions: List[Mention] = field(default_factory=list)
    code_blocks: List[str] = field(default_factory=list)

    @property
    def mention_mode(self) -> bool:
        return bool(self.mentions)


@dataclass
class MessageCardSection:
    text: Optional[str] = None
    title: Optional[str] = None
    start_group: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"markdown": True}
        if self.title:
            data["title"] = self.title
        if self.text:
            data["text"] = self.text
        if self.start_group:
            data["startGroup"] = True
        return data


@dataclass
class MessageCard:
    """Legacy connector MessageCard with sections and OpenUri actions."""

    title: str
    theme_color: str
    summary: str = ""
    sections: List[MessageCardSection] = field(default_factory=list)
    target_links: List[TargetLink] = field(default_factory=list)

    def add_section(self, *sections: MessageCardSection) -> None:
        for section in sections:
            if section.text or section.title:
                self.sections.append(section)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "@type": "MessageCard",
            "@context": MESSAGE_CARD_CONTEXT,
            "summary": self.summary or self.title,
            "title": self.title,
            "themeColor": self.theme_color,
            "sections": [section.to_dict() for section in self.sections],
        }
        if self.target_links:
            data["potentialAction"] = [
                {
                    "@type": "OpenUri",
                    "name": link.label,
                    "targets": [{"os": "default", "uri": link.url}],
                }
                for link in self.target_links
            ]
        return data


@dataclass
class MentionMessage:
    """Adaptive Card message that tags one or more users."""

    text: str
    mentions: List[Mention]
    trailer: str = ""

    def to_dict(self) -> Dict[str, Any]:
        body: List[Dict[str, Any]] = [{"type": "TextBlock", "text": self.text, "wrap": True}]
        if self.trailer:
            body.append(
                {
                    "type": "TextBlock",
                    "text": self.trailer,
                    "wrap": True,
                    "size": "Small",
                    "isSubtle": True,
                    "separator": True,
                }
            )

        return {
            "type": "message",
            "attachments": [
                {
                    "contentType": ADAPTIVE_CARD_CONTENT_TYPE,
                    "contentUrl": None,
                    "content": {
                        "$schema": ADAPTIVE_CARD_SCHEMA,
                        "type": "AdaptiveCard",
                        "version": ADAPTIVE_CARD_VERSION,
                        "body": body,
                        "msteams": {
                            "width": "Full",
                            "entities": [
                                {
                                    "type": "mention",
                                    "text": mention.token,
                                    "mentioned": {"id": mention.user_id, "name": mention.name},
                                }
                                for mention in self.mentions
                            ],
                        },
                    },
                }
            ],
        }


CardDocument = Union[MessageCard, MentionMessage]


def message_trailer(app_info: AppInfo, sender: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Branded footer crediting this tool and, optionally, the sender."""

    timestamp = (now or datetime.now().astimezone()).strftime(TRAILER_TIMESTAMP_FORMAT).strip()
    trailer = f"Message generated by [{app_info.name}]({app_info.url}) ({app_info.version}) at {timestamp}"
    if sender:
        trailer += f" on behalf of {sender}"
    return trailer


def build_card(
    payload: MessagePayload,
    app_info: AppInfo,
    convert_eol: bool = False,
    now: Optional[datetime] = None,
    logger: Optional[logging.Logger] = None,
) -> CardDocument:
    """Assemble the document to post from already validated message content."""

    log = logger or logging.getLogger(__name__)

    body_text = payload.body_text
    if convert_eol:
        body_text = convert_eol_to_break(body_text)

    trailer = message_trailer(app_info, sender=payload.sender, now=now)

    if payload.mention_mode:
        tokens = " ".join(mention.token for mention in payload.mentions)
        log.debug("Building mention message for %d user(s)", len(payload.mentions))
        return MentionMessage(text=f"{tokens} {body_text}", mentions=list(payload.mentions), trailer=trailer)

    card = MessageCard(title=payload.title, theme_color=payload.theme_color, summary=payload.title)
    card.add_section(MessageCardSection(text=body_text))

    for code in payload.code_blocks:
        card.add_section(MessageCardSection(text=try_format_as_code_block(code, logger=log), start_group=True))

    card.target_links = list(payload.target_links)
    card.add_section(MessageCardSection(text=trailer, start_group=True))

    log.debug(
        "Built message card with %d section(s) and %d action(s)",
        len(card.sections),
        len(card.target_links),
    )
    return card
