# src/proofday/verification/static.py
"""Post verifier serving posts from an in-memory mapping."""

from typing import Dict, Mapping, Optional

from ..exceptions import UpstreamError
from ..models import PostContent
from .base import COLLABORATOR, BasePostVerifier


class StaticPostVerifier(BasePostVerifier):
    """
    Serves known posts; unknown ids fail like an unreachable upstream.

    Examples:
        >>> verifier = StaticPostVerifier({"1": PostContent(post_id="1", text="hi")})
    """

    def __init__(self, posts: Optional[Mapping[str, PostContent]] = None):
        self._posts: Dict[str, PostContent] = dict(posts or {})

    def get_name(self) -> str:
        return "static"

    def add_post(self, post: PostContent) -> None:
        self._posts[post.post_id] = post

    async def fetch_post(self, post_id: str) -> PostContent:
        post = self._posts.get(post_id)
        if post is None:
            raise UpstreamError(COLLABORATOR, f"Post {post_id} is not available.")
        return post
