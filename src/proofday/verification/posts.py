# src/proofday/verification/posts.py
"""Helpers for Twitter/X post URLs."""

import re
from urllib.parse import quote, urlparse

from ..exceptions import ValidationError

_STATUS_PATH = re.compile(r"/status(?:es)?/(\d+)")

INTENT_BASE_URL = "https://twitter.com/intent/tweet"


def parse_post_id(url: str) -> str:
    """
    Extract the numeric post id from a Twitter/X status URL.

    Examples:
        >>> parse_post_id("https://x.com/alice/status/1790000000000000001?s=20")
        '1790000000000000001'

    Raises:
        ValidationError: If the URL carries no ``/status/{digits}`` segment.
    """
    if not url or not url.strip():
        raise ValidationError("post_url is required.")
    path = urlparse(url.strip()).path
    match = _STATUS_PATH.search(path)
    if not match:
        raise ValidationError(f"Could not find a post id in URL: '{url}'")
    return match.group(1)


def build_intent_url(text: str) -> str:
    """Pre-filled compose URL for ``text``."""
    return f"{INTENT_BASE_URL}?text={quote(text, safe='')}"
