"""Event types flowing between the chat platform and the broker."""

from dataclasses import dataclass, field

from tgrelay.errors import ValidationError


@dataclass
class InboundMessage:
    """Canonical chat message read from a platform update."""
    sender_id: int
    chat_id: int
    message_id: int
    text: str = ""
    has_animation: bool = False
    has_text: bool = False
    has_audio: bool = False
    has_photo: bool = False
    has_sticker: bool = False
    has_video: bool = False
    has_voice: bool = False
    has_document: bool = False
    has_video_note: bool = False
    is_forward: bool = False
    is_repost: bool = False
    was_edited: bool = False


@dataclass
class EventPayload:
    """Classified message published to the events topic."""
    sender_id: int
    chat_id: int
    message_id: int
    text: str
    categories: list[str] = field(default_factory=list)
    timestamp: int = 0


@dataclass
class SendRequest:
    """Instruction consumed from the commands topic."""
    chat_id: int = 0
    reply_to_message_id: int = 0
    text: str = ""

    @property
    def is_reply(self) -> bool:
        return self.reply_to_message_id != 0

    def validate(self) -> None:
        """Raise ValidationError listing every broken rule."""
        violations: list[str] = []
        if self.chat_id == 0:
            violations.append("no chat id")
        if self.text == "":
            violations.append("no text")
        if violations:
            raise ValidationError(violations)
