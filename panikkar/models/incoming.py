import logging
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict
from panikkar.models.message import Message

logger = logging.getLogger(__name__)

SELECTION_SEPARATOR = ":"


class MessageKind(str, Enum):
    TEXT = "text"
    BUTTON = "button"        # interactive button_reply or template quick reply
    LIST = "list"            # interactive list_reply
    IMAGE = "image"
    DOCUMENT = "document"
    LOCATION = "location"
    UNKNOWN = "unknown"


SELECTION_KINDS = (MessageKind.BUTTON, MessageKind.LIST)


def encode_selection(action: str, entity_id=None) -> str:
    """
    Builds the id carried by a button or list row.

    Example:
        encode_selection("apply_job", 42) -> "apply_job:42"
        encode_selection("main_menu")     -> "main_menu"
    """
    if entity_id is None:
        return action
    return f"{action}{SELECTION_SEPARATOR}{entity_id}"


class Selection(BaseModel):
    """Decoded button/list id: an action plus an optional entity id."""

    model_config = ConfigDict(frozen=True)

    action: str
    entity_id: Optional[str] = None

    @classmethod
    def parse(cls, raw: str) -> "Selection":
        action, _, entity_id = raw.strip().partition(SELECTION_SEPARATOR)
        return cls(action=action, entity_id=entity_id or None)

    @property
    def entity_int(self) -> Optional[int]:
        if self.entity_id is not None and self.entity_id.isdigit():
            return int(self.entity_id)
        return None

    @property
    def raw(self) -> str:
        return encode_selection(self.action, self.entity_id)


class IncomingMessage(BaseModel):
    """
    Normalised inbound message. Built once at the webhook boundary and only
    read afterwards.
    """

    model_config = ConfigDict(frozen=True)

    phone: str
    kind: MessageKind
    message_id: Optional[str] = None
    timestamp: Optional[str] = None      # unix seconds, as sent by the Cloud API
    text: Optional[str] = None
    selection: Optional[Selection] = None
    media_id: Optional[str] = None
    mime_type: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    profile_name: Optional[str] = None

    # ==================== CONVENIENCE ====================

    @property
    def is_text(self) -> bool:
        return self.kind == MessageKind.TEXT

    @property
    def is_selection(self) -> bool:
        return self.kind in SELECTION_KINDS and self.selection is not None

    @property
    def action(self) -> Optional[str]:
        """Selection action for button/list replies, None for everything else."""
        return self.selection.action if self.is_selection else None

    @property
    def normalized_text(self) -> str:
        """Lower-cased, stripped text body ("" for non-text messages)."""
        if not self.is_text or not self.text:
            return ""
        return self.text.strip().lower()

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    # ==================== INGESTION ====================

    @classmethod
    def from_webhook(cls, message: Message, profile_name: Optional[str] = None) -> "IncomingMessage":
        """
        Converts a Cloud API webhook message into an IncomingMessage.
        Button and list ids are decoded into a Selection here and nowhere else.
        """
        base = {
            "phone": message.from_,
            "message_id": message.id,
            "timestamp": message.timestamp,
            "profile_name": profile_name,
        }

        if message.type == "text" and message.text:
            return cls(kind=MessageKind.TEXT, text=message.text.get("body", ""), **base)

        if message.type == "interactive" and message.interactive:
            interactive = message.interactive
            if interactive.type == "button_reply" and interactive.button_reply:
                reply = interactive.button_reply
                return cls(kind=MessageKind.BUTTON, text=reply.title, selection=Selection.parse(reply.id), **base)
            if interactive.type == "list_reply" and interactive.list_reply:
                reply = interactive.list_reply
                return cls(kind=MessageKind.LIST, text=reply.title, selection=Selection.parse(reply.id), **base)
            logger.warning(f"[INGEST] Unsupported interactive type: {interactive.type}")

        elif message.type == "button" and message.button and message.button.payload:
            return cls(
                kind=MessageKind.BUTTON,
                text=message.button.text,
                selection=Selection.parse(message.button.payload),
                **base,
            )

        elif message.type == "location" and message.location:
            loc = message.location
            return cls(
                kind=MessageKind.LOCATION,
                latitude=loc.latitude,
                longitude=loc.longitude,
                location_name=loc.name,
                location_address=loc.address,
                **base,
            )

        elif message.type == "image" and message.image:
            return cls(
                kind=MessageKind.IMAGE,
                media_id=message.image.id,
                mime_type=message.image.mime_type,
                text=message.image.caption,
                **base,
            )

        elif message.type == "document" and message.document:
            return cls(
                kind=MessageKind.DOCUMENT,
                media_id=message.document.id,
                mime_type=message.document.mime_type,
                text=message.document.caption,
                **base,
            )

        else:
            logger.warning(f"[INGEST] Unsupported message type: {message.type}")

        return cls(kind=MessageKind.UNKNOWN, **base)
