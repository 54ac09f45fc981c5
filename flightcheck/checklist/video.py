"""
Video-link normalizer: free-form YouTube URLs → privacy-enhanced embed URLs.

Items carry an optional `video_url` typed in by whoever maintains the
checklist. Only links whose video id can be located are embedded; everything
else gets an inline hint instead of a player.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qs, urlsplit

from .qr import encode_component


EMBED_BASE = "https://www.youtube-nocookie.com/embed/"
YOUTUBE_HOSTS = frozenset({"youtube.com", "m.youtube.com", "music.youtube.com", "youtu.be"})

NO_VIDEO_HINT = "No video is set for this item."
UNSUPPORTED_VIDEO_HINT = "Only YouTube links are supported (watch / youtu.be / shorts / embed)."


def _embed(video_id: str) -> str:
    return f"{EMBED_BASE}{encode_component(video_id)}"


def to_embed_url(raw: Optional[str]) -> Optional[str]:
    """Return the embed URL for a YouTube link, or None when not embeddable.

    Accepted shapes (host compared after dropping a leading "www."):
        youtu.be/<id>, youtube.com/watch?v=<id>, youtube.com/embed/<id>,
        youtube.com/shorts/<id>, on youtube.com, m.youtube.com or
        music.youtube.com.
    """
    s = (raw or "").strip()
    if not s:
        return None
    try:
        parts = urlsplit(s)
        host = (parts.hostname or "").lower()
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https") or not host:
        return None
    if host.startswith("www."):
        host = host[len("www."):]
    if host not in YOUTUBE_HOSTS:
        return None

    if host == "youtu.be":
        segments = [seg for seg in parts.path.split("/") if seg]
        return _embed(segments[0]) if segments else None

    v = parse_qs(parts.query).get("v")
    if v and v[0]:
        return _embed(v[0])

    for prefix in ("/embed/", "/shorts/"):
        if parts.path.startswith(prefix):
            segments = parts.path.split("/")
            video_id = segments[2] if len(segments) > 2 else ""
            return _embed(video_id) if video_id else None
    return None


def video_hint(raw: Optional[str]) -> Optional[str]:
    """Inline message for items whose video cannot be embedded, else None."""
    if not (raw or "").strip():
        return NO_VIDEO_HINT
    if to_embed_url(raw) is None:
        return UNSUPPORTED_VIDEO_HINT
    return None
