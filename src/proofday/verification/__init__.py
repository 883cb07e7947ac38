# src/proofday/verification/__init__.py
"""
Dispute verification: fetching posts and matching them against dispute markers.
"""

from .base import BasePostVerifier
from .manager import create_post_verifier
from .markers import (IssuedMarker, MarkerMatch, MarkerStrategy,
                      ProfileUrlMarkerStrategy, TokenMarkerStrategy,
                      create_marker_strategy, generate_token)
from .posts import build_intent_url, parse_post_id
from .retry import fetch_with_retry
from .static import StaticPostVerifier
from .syndication import SyndicationPostVerifier

__all__ = [
    "BasePostVerifier",
    "SyndicationPostVerifier",
    "StaticPostVerifier",
    "MarkerStrategy",
    "TokenMarkerStrategy",
    "ProfileUrlMarkerStrategy",
    "IssuedMarker",
    "MarkerMatch",
    "create_marker_strategy",
    "create_post_verifier",
    "fetch_with_retry",
    "generate_token",
    "build_intent_url",
    "parse_post_id",
]
