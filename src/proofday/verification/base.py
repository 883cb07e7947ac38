# src/proofday/verification/base.py
"""
Abstract Base Class for Post-Verifiers.

A post verifier fetches the public content of a social-media post by id.
Transient failures raise :class:`~proofday.exceptions.UpstreamError` with
``collaborator="post_verifier"``; retrying is the caller's job
(see :func:`proofday.verification.retry.fetch_with_retry`).
"""

import abc

from ..models import PostContent

COLLABORATOR = "post_verifier"


class BasePostVerifier(abc.ABC):
    """Abstract Base Class for post fetching services."""

    @abc.abstractmethod
    def get_name(self) -> str:
        """Return the verifier's identifier (e.g. "syndication", "static")."""
        pass

    @abc.abstractmethod
    async def fetch_post(self, post_id: str) -> PostContent:
        """
        Fetch a post's text and embedded URLs.

        Args:
            post_id: The numeric post id.

        Raises:
            UpstreamError: If the post cannot be fetched.
        """
        pass

    async def close(self) -> None:
        pass
