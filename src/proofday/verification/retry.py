# src/proofday/verification/retry.py
"""Bounded retry for post fetching."""

import asyncio
import logging
from typing import Optional

from ..exceptions import UpstreamError
from ..models import PostContent
from .base import BasePostVerifier

logger = logging.getLogger(__name__)


async def fetch_with_retry(verifier: BasePostVerifier, post_id: str,
                           attempts: int = 3, delay: float = 1.0) -> PostContent:
    """
    Fetch a post, retrying on UpstreamError with a fixed delay.

    Args:
        verifier: The post verifier to call.
        post_id: The post to fetch.
        attempts: Total number of attempts (at least one).
        delay: Seconds slept between attempts.

    Returns:
        The fetched post.

    Raises:
        UpstreamError: The last error once every attempt has failed.
    """
    attempts = max(1, attempts)
    last_error: Optional[UpstreamError] = None

    for attempt in range(1, attempts + 1):
        try:
            return await verifier.fetch_post(post_id)
        except UpstreamError as e:
            last_error = e
            if attempt < attempts:
                logger.warning("Post fetch failed (attempt %d/%d): %s. Retrying in %.2fs...",
                               attempt, attempts, e, delay)
                await asyncio.sleep(delay)

    logger.error("Post %s could not be fetched after %d attempts", post_id, attempts)
    raise last_error  # type: ignore[misc]
