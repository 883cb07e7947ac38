# src/proofday/verification/syndication.py
"""
Post verifier backed by the public Twitter/X syndication endpoint.

The endpoint returns a post as JSON without authentication. Only the text
(``text`` or ``full_text``) and the embedded URLs
(``entities.urls[].expanded_url`` / ``url``) are used.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..exceptions import UpstreamError
from ..models import PostContent
from .base import COLLABORATOR, BasePostVerifier

logger = logging.getLogger(__name__)

DEFAULT_SYNDICATION_URL = "https://cdn.syndication.twimg.com/widgets/tweet.json"


def _embedded_urls(payload: Dict[str, Any]) -> List[str]:
    urls: List[str] = []
    entities = payload.get("entities") or {}
    for item in entities.get("urls") or []:
        if not isinstance(item, dict):
            continue
        for key in ("expanded_url", "url"):
            value = item.get(key)
            if isinstance(value, str) and value:
                urls.append(value)
    return urls


def post_from_payload(post_id: str, payload: Dict[str, Any]) -> PostContent:
    """Project a syndication JSON payload onto PostContent."""
    text = payload.get("text") or payload.get("full_text") or ""
    return PostContent(post_id=post_id, text=str(text), embedded_urls=_embedded_urls(payload))


class SyndicationPostVerifier(BasePostVerifier):
    """
    Fetches posts with aiohttp.

    Args:
        base_url: Syndication endpoint; the post id goes in the ``id`` query parameter.
        timeout: Total request timeout in seconds.
    """

    def __init__(self, base_url: str = DEFAULT_SYNDICATION_URL, timeout: float = 10.0):
        self._base_url = base_url
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    def get_name(self) -> str:
        return "syndication"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self._timeout))
        return self._session

    async def fetch_post(self, post_id: str) -> PostContent:
        session = await self._get_session()
        try:
            async with session.get(self._base_url, params={"id": post_id}) as response:
                if response.status < 200 or response.status >= 300:
                    raise UpstreamError(COLLABORATOR, f"Fetching post {post_id} returned HTTP {response.status}")
                payload = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            logger.warning("Fetching post %s timed out after %ss", post_id, self._timeout)
            raise UpstreamError(COLLABORATOR, f"Fetching post {post_id} timed out.", cause=e) from e
        except aiohttp.ClientError as e:
            logger.warning("Fetching post %s failed: %s", post_id, e)
            raise UpstreamError(COLLABORATOR, f"Fetching post {post_id} failed: {e}", cause=e) from e
        except ValueError as e:
            raise UpstreamError(COLLABORATOR, f"Post {post_id} returned invalid JSON.", cause=e) from e

        if not isinstance(payload, dict):
            raise UpstreamError(COLLABORATOR, f"Post {post_id} returned an unexpected payload.")
        return post_from_payload(post_id, payload)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("Syndication verifier session closed.")
        self._session = None
