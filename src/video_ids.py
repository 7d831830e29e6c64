import re
from typing import Optional
from urllib.parse import parse_qs, urlsplit

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")
_SHORT_LINK_TERMINATORS = re.compile(r"[/?#]")


def is_video_id(value: str) -> bool:
    return bool(VIDEO_ID_PATTERN.match(value))


def _from_short_link(url: str) -> Optional[str]:
    tail = url.split("youtu.be/", 1)[1]
    return _SHORT_LINK_TERMINATORS.split(tail, 1)[0]


def _from_watch_link(url: str) -> Optional[str]:
    if "://" not in url:
        url = f"https://{url}"
    values = parse_qs(urlsplit(url).query).get("v")
    return values[0] if values else None


def resolve_video_id(text) -> Optional[str]:
    """
    Extracts an 11-character YouTube video ID from user input.

    Accepts youtu.be short links, youtube.com links carrying a ``v`` query
    parameter, and bare IDs, checked in that order.

    Returns:
        The video ID, or None when the input is not a recognizable reference.
    """
    if not isinstance(text, str):
        return None
    text = text.strip()
    if not text:
        return None

    if "youtu.be/" in text:
        candidate = _from_short_link(text)
    elif "youtube.com" in text:
        candidate = _from_watch_link(text)
    else:
        candidate = text

    if candidate and is_video_id(candidate):
        return candidate
    return None
