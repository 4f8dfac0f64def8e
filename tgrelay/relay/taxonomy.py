"""Interaction-type taxonomy.

A message is first reduced to raw tags, one per content attribute that is
present, then each raw tag is mapped onto a semantic category. Both tables
are ordered tuples so that the category order in a published event is stable:
categories appear in the declaration order of the raw tags that produced them.
"""

from typing import Iterable

from tgrelay.bus.events import InboundMessage

EDITED = "edited"

# InboundMessage flag -> raw tag
FLAG_TAGS: tuple[tuple[str, str], ...] = (
    ("has_animation", "animation"),
    ("has_text", "text"),
    ("has_audio", "audio"),
    ("has_photo", "photo"),
    ("has_sticker", "sticker"),
    ("has_video", "video"),
    ("has_voice", "voice"),
    ("has_document", "file"),
    ("has_video_note", "videoNote"),
    ("is_forward", "forward"),
    ("is_repost", "repost"),
)

# raw tag -> semantic category ("audio" is deliberately unmapped)
TAG_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("video", "media"),
    ("photo", "media"),
    ("file", "media"),
    ("text", "text"),
    ("animation", "reaction"),
    ("sticker", "reaction"),
    ("voice", "social_interaction"),
    ("videoNote", "social_interaction"),
    ("repost", "content"),
    (EDITED, "edit_flag"),
    ("forward", "provenance_check"),
)

_CATEGORY_BY_TAG = dict(TAG_CATEGORIES)

CATEGORIES: tuple[str, ...] = tuple(dict.fromkeys(c for _, c in TAG_CATEGORIES))


def derive_raw_tags(msg: InboundMessage) -> list[str]:
    """Return the raw tags for every content flag set on the message.

    An edited message is tagged "edited" and nothing else.
    """
    if msg.was_edited:
        return [EDITED]
    return [tag for flag, tag in FLAG_TAGS if getattr(msg, flag)]


def map_to_categories(tags: Iterable[str]) -> list[str]:
    """Map raw tags to categories, keeping the first occurrence of each."""
    categories: list[str] = []
    for tag in tags:
        category = _CATEGORY_BY_TAG.get(tag)
        if category is None or category in categories:
            continue
        categories.append(category)
    return categories


def classify(msg: InboundMessage) -> list[str]:
    return map_to_categories(derive_raw_tags(msg))
