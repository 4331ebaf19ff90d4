"""Tips panel text: loading with a placeholder fallback, and markdown to HTML."""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

PLACEHOLDER_TIPS = "# Tips\n\nTips content could not be loaded."


def load_tips(path: str) -> str:
    """Read the tips file, or return the placeholder if it cannot be read."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Error loading tips from %s: %s", path, e)
        return PLACEHOLDER_TIPS


def markdown_to_html(text: str) -> str:
    """Convert the small markdown subset used by the tips file.

    Handles ``#``/``##``/``###`` headers, ``[text](url)`` links (opened in
    a new tab), blank-line paragraphs and single line breaks.
    """
    html = text
    html = re.sub(r"^### (.*)$", r"<h3>\1</h3>", html, flags=re.MULTILINE)
    html = re.sub(r"^## (.*)$", r"<h2>\1</h2>", html, flags=re.MULTILINE)
    html = re.sub(r"^# (.*)$", r"<h1>\1</h1>", html, flags=re.MULTILINE)
    html = re.sub(r"\[([^\]]+)\]\(([^)]+)\)", r'<a href="\2" target="_blank">\1</a>', html)
    html = html.replace("\n\n", "</p><p>")
    html = html.replace("\n", "<br>")
    return f"<p>{html}</p>"
