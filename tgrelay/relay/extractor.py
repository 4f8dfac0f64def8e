"""Pull the canonical message out of a Telegram update."""

from __future__ import annotations

from typing import Any

from telegram.constants import MessageOriginType

from tgrelay.bus.events import InboundMessage
from tgrelay.errors import NoMessageError

_FORWARD_ORIGINS = (MessageOriginType.USER,)
_REPOST_ORIGINS = (MessageOriginType.CHAT, MessageOriginType.CHANNEL)


def get_update_message(update: Any) -> Any:
    """Return the new message, else the edited one, else raise NoMessageError."""
    if getattr(update, "message", None) is not None:
        return update.message
    if getattr(update, "edited_message", None) is not None:
        return update.edited_message
    raise NoMessageError()


def to_inbound_message(message: Any) -> InboundMessage:
    """Read a Telegram message's attributes into an InboundMessage."""
    user = getattr(message, "from_user", None)
    text = getattr(message, "text", None) or getattr(message, "caption", None) or ""

    origin = getattr(message, "forward_origin", None)
    origin_type = getattr(origin, "type", None)

    return InboundMessage(
        sender_id=user.id if user is not None else 0,
        chat_id=message.chat.id,
        message_id=message.message_id,
        text=text,
        has_animation=bool(getattr(message, "animation", None)),
        has_text=bool(text),
        has_audio=bool(getattr(message, "audio", None)),
        has_photo=bool(getattr(message, "photo", None)),
        has_sticker=bool(getattr(message, "sticker", None)),
        has_video=bool(getattr(message, "video", None)),
        has_voice=bool(getattr(message, "voice", None)),
        has_document=bool(getattr(message, "document", None)),
        has_video_note=bool(getattr(message, "video_note", None)),
        is_forward=origin_type in _FORWARD_ORIGINS,
        is_repost=origin_type in _REPOST_ORIGINS,
        was_edited=getattr(message, "edit_date", None) is not None,
    )


def extract(update: Any) -> InboundMessage:
    return to_inbound_message(get_update_message(update))
