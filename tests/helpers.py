"""Builders for inbound messages and readers for recorded outgoing ones."""
from typing import List, Optional

from panikkar.models.incoming import IncomingMessage, MessageKind, Selection
from panikkar.models.session import ConversationSession

PHONE = "919876543210"

CATEGORIES = [
    {"id": 1, "name": "Cleaning", "nameMl": "വൃത്തിയാക്കൽ", "icon": "🧹", "minPay": 300, "maxPay": 600},
    {"id": 2, "name": "Shifting", "nameMl": "സാധനം മാറ്റൽ", "icon": "📦", "minPay": 500, "maxPay": 1200},
    {"id": 3, "name": "Queue Standing", "nameMl": "ക്യൂ നിൽക്കൽ", "icon": "🧍", "minPay": 150, "maxPay": 400},
]


def text(body: str, message_id: Optional[str] = None, phone: str = PHONE) -> IncomingMessage:
    return IncomingMessage(phone=phone, kind=MessageKind.TEXT, text=body, message_id=message_id)


def button(raw_id: str, title: Optional[str] = None, message_id: Optional[str] = None, phone: str = PHONE) -> IncomingMessage:
    return IncomingMessage(
        phone=phone,
        kind=MessageKind.BUTTON,
        text=title or raw_id,
        selection=Selection.parse(raw_id),
        message_id=message_id,
    )


def list_reply(raw_id: str, title: Optional[str] = None, phone: str = PHONE) -> IncomingMessage:
    return IncomingMessage(
        phone=phone,
        kind=MessageKind.LIST,
        text=title or raw_id,
        selection=Selection.parse(raw_id),
    )


def location(latitude: float = 9.9816, longitude: float = 76.2999, address: Optional[str] = "Kakkanad, Kochi",
             phone: str = PHONE) -> IncomingMessage:
    return IncomingMessage(
        phone=phone,
        kind=MessageKind.LOCATION,
        latitude=latitude,
        longitude=longitude,
        location_address=address,
    )


def image(media_id: str = "media-1", phone: str = PHONE) -> IncomingMessage:
    return IncomingMessage(phone=phone, kind=MessageKind.IMAGE, media_id=media_id, mime_type="image/jpeg")


def new_session(**fields) -> ConversationSession:
    return ConversationSession(phone=PHONE, **fields)


def registered_session(**fields) -> ConversationSession:
    return ConversationSession(phone=PHONE, user_id=7, **fields)


# ==================== OUTGOING ====================

def sent_bodies(messenger) -> List[str]:
    """Body text of every message sent, in call order per method."""
    bodies = [call.args[1] for call in messenger.send_text.await_args_list]
    bodies += [call.args[1] for call in messenger.send_buttons.await_args_list]
    bodies += [call.args[1] for call in messenger.send_list.await_args_list]
    bodies += [call.args[1] for call in messenger.request_location.await_args_list]
    return bodies


def sent_anything_containing(messenger, fragment: str) -> bool:
    return any(fragment in body for body in sent_bodies(messenger))


def last_button_ids(messenger) -> List[str]:
    return [button_id for button_id, _ in messenger.send_buttons.await_args.args[2]]


def last_list_ids(messenger) -> List[str]:
    sections = messenger.send_list.await_args.args[3]
    return [row["id"] for section in sections for row in section["rows"]]
