# src/proofday/config/models.py
"""
Pydantic models for proofday configuration validation.

The configuration hierarchy:
    ProofDayConfig (root)
    ├── ServerConfig      - HTTP server settings
    ├── StoreConfig       - Goal store backend selection
    ├── JudgeConfig       - Question generation / grading service
    ├── AttestorConfig    - Attestation ledger client
    ├── DisputeConfig     - Dispute marker strategy and post fetching
    ├── LifecycleConfig   - Controller policies
    └── logging           - Raw dict consumed by logging_config

Usage:
    >>> from proofday.config.models import ProofDayConfig
    >>> config = ProofDayConfig()  # All defaults
    >>> config.dispute.fetch_attempts
    3
"""

from __future__ import annotations

import os
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# SERVER
# =============================================================================


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=8000, ge=1, le=65535, description="Port to bind")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed by the CORS middleware",
    )


# =============================================================================
# STORE
# =============================================================================


class StoreConfig(BaseModel):
    """
    Goal store backend configuration.

    Examples:
        >>> StoreConfig().type
        'memory'
    """

    type: Literal["memory", "redis"] = Field(
        default="memory",
        description="Backend type: in-process memory or Redis",
    )
    redis_url: str = Field(
        default="",
        description="Redis connection URL. Falls back to the REDIS_URL environment variable.",
    )
    key_prefix: str = Field(default="", description="Prefix prepended to every Redis key")
    feed_max_entries: int = Field(
        default=500,
        ge=1,
        le=10000,
        description="Maximum number of entries retained in the recent-activity feed",
    )

    @field_validator("type", mode="before")
    @classmethod
    def lower_type(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    def resolved_redis_url(self) -> str:
        return self.redis_url or os.environ.get("REDIS_URL", "redis://localhost:6379/0")


# =============================================================================
# JUDGE
# =============================================================================


class JudgeConfig(BaseModel):
    """
    Configuration for the question generation and grading service.

    ``type="openai"`` without an API key degrades to the mock judge.
    """

    type: Literal["mock", "openai"] = Field(default="mock")
    model: str = Field(default="gpt-4o-mini", description="Chat model used by the OpenAI judge")
    api_key: str = Field(
        default="",
        description="OpenAI API key. Falls back to the OPENAI_API_KEY environment variable.",
    )
    base_url: str | None = Field(default=None, description="Custom OpenAI-compatible endpoint")
    timeout: float = Field(default=60.0, gt=0.0, description="Request timeout in seconds")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)

    @field_validator("type", mode="before")
    @classmethod
    def lower_type(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    def resolved_api_key(self) -> str:
        return self.api_key or os.environ.get("OPENAI_API_KEY", "")


# =============================================================================
# ATTESTOR
# =============================================================================

DEFAULT_EAS_CONTRACT = "0x4200000000000000000000000000000000000021"  # Base Sepolia EAS


class AttestorConfig(BaseModel):
    """
    Configuration for the attestation ledger client.

    The EAS attestor returns mocked receipts whenever ``rpc_url``,
    ``private_key`` or ``schema_uid`` are missing.
    """

    type: Literal["mock", "eas"] = Field(default="mock")
    rpc_url: str = Field(
        default="",
        description="JSON-RPC endpoint. Falls back to RPC_URL_BASE_SEPOLIA.",
    )
    private_key: str = Field(
        default="",
        description="Platform signing key. Falls back to PLATFORM_PRIVATE_KEY.",
    )
    schema_uid: str = Field(default="", description="Registered schema UID. Falls back to EAS_SCHEMA_UID.")
    contract_address: str = Field(
        default="",
        description="EAS contract address. Falls back to EAS_CONTRACT_ADDRESS, then Base Sepolia.",
    )
    app_name: str = Field(default="ProofOfDay", description="Value of the schema's 'app' field")
    fallback_to_mock: bool = Field(
        default=True,
        description="Return a mocked receipt instead of failing when publication hits an infrastructure error",
    )
    receipt_timeout: float = Field(default=120.0, gt=0.0)

    @field_validator("type", mode="before")
    @classmethod
    def lower_type(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    def resolved(self) -> dict[str, str]:
        """Return connection settings with environment fallbacks applied."""
        return {
            "rpc_url": self.rpc_url or os.environ.get("RPC_URL_BASE_SEPOLIA", ""),
            "private_key": self.private_key or os.environ.get("PLATFORM_PRIVATE_KEY", ""),
            "schema_uid": self.schema_uid or os.environ.get("EAS_SCHEMA_UID", ""),
            "contract_address": (
                self.contract_address
                or os.environ.get("EAS_CONTRACT_ADDRESS", "")
                or DEFAULT_EAS_CONTRACT
            ),
        }


# =============================================================================
# DISPUTE
# =============================================================================


class DisputeConfig(BaseModel):
    """
    Dispute marker strategy and post fetching.

    Examples:
        >>> DisputeConfig().strategy
        'token'
    """

    strategy: Literal["token", "profile_url"] = Field(
        default="token",
        description="How a dispute post proves ownership: a single-use token or the owner's profile URL",
    )
    keyword_fallback: list[str] = Field(
        default_factory=list,
        description="Keywords that verify a post when the marker itself is missing",
    )
    site_url: str = Field(
        default="",
        description="Public base URL used to build profile links. Falls back to SITE_URL.",
    )
    verifier: Literal["syndication", "static"] = Field(default="syndication")
    syndication_url: str = Field(
        default="https://cdn.syndication.twimg.com/widgets/tweet.json",
        description="Public endpoint returning a post as JSON",
    )
    fetch_timeout: float = Field(default=10.0, gt=0.0)
    fetch_attempts: int = Field(default=3, ge=1, le=10)
    fetch_delay_seconds: float = Field(default=1.0, ge=0.0)

    @field_validator("keyword_fallback")
    @classmethod
    def strip_keywords(cls, v: list[str]) -> list[str]:
        return [k.strip() for k in v if k and k.strip()]

    def resolved_site_url(self) -> str:
        return (self.site_url or os.environ.get("SITE_URL", "")).rstrip("/")


# =============================================================================
# LIFECYCLE
# =============================================================================


class LifecycleConfig(BaseModel):
    """Controller policies for the choices the state machine leaves open."""

    on_judge_failure: Literal["fail", "pass_default"] = Field(
        default="fail",
        description="'fail' surfaces grading failures; 'pass_default' records a flagged PASS",
    )
    terminal_reentry: Literal["block", "allow"] = Field(
        default="block",
        description="Whether questions/answers may be re-run on a PASSED or FAILED goal",
    )
    auto_attest_on_grade: bool = Field(
        default=False,
        description="Publish the attestation as part of SubmitAnswers (fused variant)",
    )
    feed_limit: int = Field(default=200, ge=1, le=10000, description="Default feed page size")


# =============================================================================
# ROOT
# =============================================================================


class ProofDayConfig(BaseModel):
    """Root configuration object."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    judge: JudgeConfig = Field(default_factory=JudgeConfig)
    attestor: AttestorConfig = Field(default_factory=AttestorConfig)
    dispute: DisputeConfig = Field(default_factory=DisputeConfig)
    lifecycle: LifecycleConfig = Field(default_factory=LifecycleConfig)
    logging: dict[str, Any] = Field(default_factory=dict)
