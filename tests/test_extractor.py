from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from tgrelay.errors import ExtractionError, NoMessageError
from tgrelay.relay.extractor import extract, get_update_message, to_inbound_message


def _tg_message(**overrides) -> SimpleNamespace:
    fields = {
        "from_user": SimpleNamespace(id=42),
        "chat": SimpleNamespace(id=555),
        "message_id": 7,
        "text": None,
        "caption": None,
        "edit_date": None,
        "forward_origin": None,
        "animation": None,
        "audio": None,
        "photo": (),
        "sticker": None,
        "video": None,
        "voice": None,
        "document": None,
        "video_note": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_new_message_wins_over_edited() -> None:
    new, edited = _tg_message(message_id=1), _tg_message(message_id=2)
    assert get_update_message(SimpleNamespace(message=new, edited_message=edited)) is new


def test_falls_back_to_edited_message() -> None:
    edited = _tg_message(message_id=2)
    assert get_update_message(SimpleNamespace(message=None, edited_message=edited)) is edited


def test_update_without_message_raises() -> None:
    update = SimpleNamespace(message=None, edited_message=None, callback_query=object())
    with pytest.raises(NoMessageError):
        get_update_message(update)
    with pytest.raises(ExtractionError):
        extract(update)


def test_text_message_attributes() -> None:
    msg = to_inbound_message(_tg_message(text="hello"))
    assert (msg.sender_id, msg.chat_id, msg.message_id) == (42, 555, 7)
    assert msg.text == "hello"
    assert msg.has_text is True
    assert msg.has_photo is False
    assert msg.was_edited is False


def test_captioned_photo_is_text_and_photo() -> None:
    msg = to_inbound_message(_tg_message(caption="look", photo=(object(),)))
    assert msg.text == "look"
    assert msg.has_text is True
    assert msg.has_photo is True


def test_empty_photo_tuple_is_not_a_photo() -> None:
    assert to_inbound_message(_tg_message(photo=())).has_photo is False


def test_media_flags() -> None:
    msg = to_inbound_message(
        _tg_message(
            animation=object(),
            audio=object(),
            sticker=object(),
            video=object(),
            voice=object(),
            document=object(),
            video_note=object(),
        )
    )
    assert msg.has_animation and msg.has_audio and msg.has_sticker
    assert msg.has_video and msg.has_voice and msg.has_document and msg.has_video_note
    assert msg.has_text is False
    assert msg.text == ""


def test_edit_date_marks_edited() -> None:
    msg = to_inbound_message(_tg_message(text="hi", edit_date=datetime.now(timezone.utc)))
    assert msg.was_edited is True


def test_forward_origins() -> None:
    def origin(kind: str) -> SimpleNamespace:
        return SimpleNamespace(type=kind)

    from_user = to_inbound_message(_tg_message(forward_origin=origin("user")))
    assert from_user.is_forward and not from_user.is_repost

    from_channel = to_inbound_message(_tg_message(forward_origin=origin("channel")))
    assert from_channel.is_repost and not from_channel.is_forward

    from_chat = to_inbound_message(_tg_message(forward_origin=origin("chat")))
    assert from_chat.is_repost

    hidden = to_inbound_message(_tg_message(forward_origin=origin("hidden_user")))
    assert not hidden.is_forward and not hidden.is_repost


def test_message_without_sender_uses_zero() -> None:
    assert to_inbound_message(_tg_message(from_user=None)).sender_id == 0


def test_extract_reads_edited_update() -> None:
    update = SimpleNamespace(
        message=None,
        edited_message=_tg_message(text="fixed", edit_date=datetime.now(timezone.utc)),
    )
    msg = extract(update)
    assert msg.was_edited is True
    assert msg.text == "fixed"
