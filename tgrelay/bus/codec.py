"""JSON wire format for events and send-requests."""

import json
from typing import Any

from tgrelay.bus.events import EventPayload, SendRequest
from tgrelay.errors import MalformedPayloadError


def encode_event(payload: EventPayload) -> str:
    return json.dumps(
        {
            "userId": payload.sender_id,
            "chatId": payload.chat_id,
            "messageId": payload.message_id,
            "text": payload.text,
            "types": list(payload.categories),
            "timestamp": payload.timestamp,
        }
    )


def decode_event(data: str | bytes) -> EventPayload:
    obj = _load_object(data)
    types = obj.get("types") or []
    if not isinstance(types, list) or not all(isinstance(t, str) for t in types):
        raise MalformedPayloadError("field 'types' must be a list of strings")
    return EventPayload(
        sender_id=_int_field(obj, "userId"),
        chat_id=_int_field(obj, "chatId"),
        message_id=_int_field(obj, "messageId"),
        text=_str_field(obj, "text"),
        categories=types,
        timestamp=_int_field(obj, "timestamp"),
    )


def decode_send_request(data: str | bytes) -> SendRequest:
    """Parse and validate a send-request.

    Raises MalformedPayloadError when the payload cannot be parsed and
    ValidationError when it parses but breaks a rule. Missing fields take
    their zero value and are caught by validation.
    """
    obj = _load_object(data)
    request = SendRequest(
        chat_id=_int_field(obj, "chatId"),
        reply_to_message_id=_int_field(obj, "replyToMessageId"),
        text=_str_field(obj, "text"),
    )
    request.validate()
    return request


def _load_object(data: str | bytes) -> dict[str, Any]:
    try:
        obj = json.loads(data)
    except (TypeError, ValueError) as e:
        raise MalformedPayloadError(f"invalid JSON: {e}") from e
    if not isinstance(obj, dict):
        raise MalformedPayloadError(f"expected a JSON object, got {type(obj).__name__}")
    return obj


def _int_field(obj: dict[str, Any], key: str) -> int:
    value = obj.get(key)
    if value is None:
        return 0
    # bool is an int subclass but never a valid id
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedPayloadError(f"field '{key}' must be an integer")
    return value


def _str_field(obj: dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedPayloadError(f"field '{key}' must be a string")
    return value
