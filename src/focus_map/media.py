"""Media playback for the ``animation`` automation.

Resolves a node's media reference into something a player can show,
and tracks the fullscreen overlay.  Known video hosts become embeddable
player URLs; other http(s) links are played directly.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional
from urllib.parse import parse_qs, urlparse

from pydantic import BaseModel

logger = logging.getLogger(__name__)

YOUTUBE_EMBED = "https://www.youtube.com/embed/{id}?autoplay=1&controls=1&modestbranding=1"
VIMEO_EMBED = "https://player.vimeo.com/video/{id}?autoplay=1"

DISMISS_REASONS = ("close", "escape", "click")


class MediaSource(BaseModel):
    """A playable media reference."""
    kind: Literal["embed", "video"]
    url: str
    original_url: str


def _youtube_id(url: str) -> Optional[str]:
    parsed = urlparse(url)
    host = parsed.netloc.lower()
    if host.endswith("youtu.be"):
        return parsed.path.strip("/").split("/")[0] or None
    if "youtube.com" in host:
        if parsed.path.startswith("/watch"):
            ids = parse_qs(parsed.query).get("v")
            return ids[0] if ids else None
        if parsed.path.startswith("/embed/"):
            return parsed.path[len("/embed/"):].split("/")[0] or None
    return None


def _vimeo_id(url: str) -> Optional[str]:
    parsed = urlparse(url)
    if not parsed.netloc.lower().endswith("vimeo.com"):
        return None
    parts = [p for p in parsed.path.split("/") if p]
    if parts and parts[-1].isdigit():
        return parts[-1]
    return None


def resolve_media_url(url: str) -> MediaSource:
    """Resolve ``url`` into an embeddable or directly playable source.

    Raises:
        ValueError: If the URL is empty or cannot be played.
    """
    url = (url or "").strip()
    if not url:
        raise ValueError("No media reference")

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Unsupported media reference '{url}'")

    host = parsed.netloc.lower()
    if "youtube.com" in host or host.endswith("youtu.be"):
        video_id = _youtube_id(url)
        if not video_id:
            raise ValueError(f"Could not find a YouTube video id in '{url}'")
        return MediaSource(kind="embed", url=YOUTUBE_EMBED.format(id=video_id), original_url=url)

    if host.endswith("vimeo.com"):
        video_id = _vimeo_id(url)
        if not video_id:
            raise ValueError(f"Could not find a Vimeo video id in '{url}'")
        return MediaSource(kind="embed", url=VIMEO_EMBED.format(id=video_id), original_url=url)

    return MediaSource(kind="video", url=url, original_url=url)


class MediaOverlay:
    """The fullscreen player.  At most one source is open at a time."""

    def __init__(self):
        self.source: Optional[MediaSource] = None

    @property
    def is_open(self) -> bool:
        return self.source is not None

    def open(self, url: str) -> bool:
        """Open the overlay for ``url``.  Returns False if it cannot be played."""
        try:
            source = resolve_media_url(url)
        except ValueError as e:
            logger.warning("Media not played: %s", e)
            return False
        self.source = source
        return True

    def dismiss(self, reason: str = "close") -> bool:
        """Close the overlay.  Returns True if it was open."""
        if reason not in DISMISS_REASONS:
            raise ValueError(f"Unknown dismiss reason '{reason}'")
        was_open = self.is_open
        self.source = None
        return was_open

    def handle_key(self, key: str) -> bool:
        if key == "Escape" and self.is_open:
            return self.dismiss("escape")
        return False
