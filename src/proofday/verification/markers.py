# src/proofday/verification/markers.py
"""
Dispute marker strategies.

A marker is what a dispute post must carry to count as proof. The strategy
is chosen once, from ``[dispute].strategy``:

- ``token``: a fresh single-use token (``POD-`` + 12 upper-case hex chars)
  is persisted on the goal when the dispute starts, and must appear in the
  post text or in one of its embedded URLs.
- ``profile_url``: the owner's public profile URL (``{site}/u/{owner}``)
  must appear; nothing extra is persisted.

Matching is case-insensitive and a marker only counts when it is not
followed by characters that would extend it, so ``/u/al`` does not match a
link to ``/u/alice``. Either strategy may carry keyword fallbacks:
when the marker itself is missing, any keyword present in the post text
verifies the post.
"""

import abc
import logging
import re
import secrets
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

from ..config.models import DisputeConfig
from ..exceptions import ConfigError
from ..models import Goal, PostContent

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "POD-"


def generate_token() -> str:
    """A new ``POD-XXXXXXXXXXXX`` token."""
    return TOKEN_PREFIX + secrets.token_hex(6).upper()


def profile_path(owner: str) -> str:
    return f"/u/{quote(owner, safe='')}"


@dataclass
class IssuedMarker:
    """A marker handed out at dispute start, with the goal fields it needs persisted."""
    marker: str
    profile_url: str
    intent_text: str
    persist: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MarkerMatch:
    verified: bool
    matched: Optional[str] = None
    via: str = "none"  # "marker", "keyword" or "none"


class MarkerStrategy(abc.ABC):
    """
    Base class for dispute marker strategies.

    Args:
        site_url: Public base URL of the service, used to build profile links.
        keyword_fallback: Keywords that verify a post when the marker is absent.
    """

    name: str = ""
    # What may follow a marker for it to count as a whole match.
    marker_boundary: str = r"(?![0-9A-Za-z_-])"

    def __init__(self, site_url: str = "", keyword_fallback: Optional[Sequence[str]] = None):
        self.site_url = (site_url or "").rstrip("/")
        self.keyword_fallback: List[str] = [k for k in (keyword_fallback or []) if k]

    def profile_url(self, owner: str, base_url: Optional[str] = None) -> str:
        base = self.site_url or (base_url or "").rstrip("/")
        return f"{base}{profile_path(owner)}"

    @abc.abstractmethod
    def issue(self, goal: Goal, base_url: Optional[str] = None) -> IssuedMarker:
        """Create the marker for a new dispute on ``goal``."""
        pass

    @abc.abstractmethod
    def expected_markers(self, goal: Goal) -> List[str]:
        """Strings any one of which proves the dispute."""
        pass

    def match(self, goal: Goal, post: PostContent) -> MarkerMatch:
        haystacks = [post.text, *post.embedded_urls]
        for marker in self.expected_markers(goal):
            if not marker:
                continue
            pattern = re.compile(re.escape(marker) + self.marker_boundary, re.IGNORECASE)
            if any(pattern.search(h) for h in haystacks):
                return MarkerMatch(verified=True, matched=marker, via="marker")

        text = post.text.lower()
        for keyword in self.keyword_fallback:
            if keyword.lower() in text:
                logger.info("Dispute post %s matched fallback keyword '%s'", post.post_id, keyword)
                return MarkerMatch(verified=True, matched=keyword, via="keyword")
        return MarkerMatch(verified=False)


class TokenMarkerStrategy(MarkerStrategy):
    name = "token"

    def issue(self, goal: Goal, base_url: Optional[str] = None) -> IssuedMarker:
        token = generate_token()
        profile = self.profile_url(goal.owner, base_url)
        return IssuedMarker(
            marker=token,
            profile_url=profile,
            intent_text=f'Dispute: I completed "{goal.title}". Proof-of-Day token {token} {profile}',
            persist={"dispute_token": token},
        )

    def expected_markers(self, goal: Goal) -> List[str]:
        return [goal.dispute_token] if goal.dispute_token else []


class ProfileUrlMarkerStrategy(MarkerStrategy):
    name = "profile_url"
    # A period ends the marker only before whitespace or end of text; usernames may contain one.
    marker_boundary = r"(?=$|[/?#\s)\]>,;:!'\"]|\.(?:$|\s))"

    def issue(self, goal: Goal, base_url: Optional[str] = None) -> IssuedMarker:
        profile = self.profile_url(goal.owner, base_url)
        return IssuedMarker(
            marker=profile,
            profile_url=profile,
            intent_text=f'Dispute: I completed "{goal.title}". Proof-of-Day {profile}',
        )

    def expected_markers(self, goal: Goal) -> List[str]:
        markers = [profile_path(goal.owner)]
        if self.site_url:
            markers.insert(0, self.profile_url(goal.owner))
        return markers


MARKER_STRATEGIES = {
    TokenMarkerStrategy.name: TokenMarkerStrategy,
    ProfileUrlMarkerStrategy.name: ProfileUrlMarkerStrategy,
}


def create_marker_strategy(config: DisputeConfig) -> MarkerStrategy:
    """
    Build the marker strategy selected by ``config.strategy``.

    Raises:
        ConfigError: If the strategy is unknown.
    """
    strategy_cls = MARKER_STRATEGIES.get(config.strategy)
    if strategy_cls is None:
        raise ConfigError(f"Unsupported dispute strategy: '{config.strategy}'. "
                          f"Available: {list(MARKER_STRATEGIES)}")
    return strategy_cls(site_url=config.resolved_site_url(), keyword_fallback=config.keyword_fallback)
