# src/proofday/judges/manager.py
"""
Judge factory.

``type = "openai"`` without an API key degrades to the mock judge so the
service can run in a disconnected/demo mode; the degradation is logged and
visible through ``diagnose()``.
"""

import logging

from ..config.models import JudgeConfig
from ..exceptions import ConfigError
from .base import BaseJudge
from .mock_judge import MockJudge

logger = logging.getLogger(__name__)

JUDGE_TYPES = ("mock", "openai")


def create_judge(config: JudgeConfig) -> BaseJudge:
    """
    Instantiate the judge described by ``config``.

    Raises:
        ConfigError: If the judge type is unknown.
        ImportError: If ``openai`` is selected but not installed.
    """
    if config.type == "mock":
        logger.info("Using mock judge")
        return MockJudge()
    if config.type == "openai":
        api_key = config.resolved_api_key()
        if not api_key:
            logger.warning("OpenAI judge configured but no API key found; falling back to mock judge.")
            return MockJudge()
        from .openai_judge import OpenAIJudge
        logger.info("Using OpenAI judge with model '%s'", config.model)
        return OpenAIJudge(
            api_key=api_key,
            model=config.model,
            base_url=config.base_url,
            timeout=config.timeout,
            temperature=config.temperature,
        )
    raise ConfigError(f"Unsupported judge type configured: '{config.type}'. Available types: {list(JUDGE_TYPES)}")
