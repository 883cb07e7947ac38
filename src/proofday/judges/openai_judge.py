# src/proofday/judges/openai_judge.py
"""
OpenAI-backed judge.

Uses JSON-mode chat completions: one call to write two questions for a
goal, and one call per question/answer pair to decide PASS/FAIL.
"""

import json
import logging
from typing import Any, Dict, Optional

try:
    from openai import AsyncOpenAI, OpenAIError
    openai_available = True
except ImportError:
    openai_available = False
    AsyncOpenAI = None  # type: ignore [assignment]
    OpenAIError = Exception  # type: ignore [assignment]

from ..exceptions import ConfigError, UpstreamError
from ..models import QuestionPair, Verdict
from .base import BaseJudge, normalize_questions

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

QUESTIONS_SYSTEM_PROMPT = (
    "You write exactly TWO short verification questions for a goal. "
    "Be specific to the goal/scope. "
    'Return ONLY JSON: {"questions":["q1","q2"]}.'
)

GRADE_SYSTEM_PROMPT = (
    "You decide PASS/FAIL for one question and the answer given to it, "
    "as evidence that the person completed their goal. "
    "Default to PASS unless the answer is empty, off-topic, or nonsense. "
    'Return ONLY JSON: {"pass": true|false}.'
)


def _parse_json_object(content: Optional[str]) -> Dict[str, Any]:
    """Parse a JSON-mode response, tolerating code fences and garbage."""
    text = (content or "").strip()
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()
    try:
        parsed = json.loads(text or "{}")
    except json.JSONDecodeError:
        logger.warning("Judge returned non-JSON content: %.200s", text)
        return {}
    if isinstance(parsed, list):
        return {"questions": parsed}
    return parsed if isinstance(parsed, dict) else {}


def _parse_verdict(payload: Dict[str, Any]) -> Verdict:
    """Read ``{"pass": ...}`` (or ``{"verdict": "PASS"}``); anything unreadable is FAIL."""
    if "pass" in payload:
        value = payload["pass"]
        if isinstance(value, str):
            return Verdict.from_bool(value.strip().lower() in ("true", "pass", "yes"))
        return Verdict.from_bool(bool(value))
    verdict = payload.get("verdict") or payload.get("result")
    if isinstance(verdict, str):
        try:
            return Verdict(verdict)
        except ValueError:
            return Verdict.FAIL
    return Verdict.FAIL


class OpenAIJudge(BaseJudge):
    """
    Judge that asks an OpenAI chat model.

    Args:
        api_key: OpenAI API key.
        model: Chat model name.
        base_url: Optional OpenAI-compatible endpoint.
        timeout: Request timeout in seconds.
        temperature: Sampling temperature.
    """

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, base_url: Optional[str] = None,
                 timeout: float = 60.0, temperature: float = 0.2):
        if not openai_available:
            raise ImportError("OpenAI library is not installed. Please install `openai`.")
        if not api_key:
            raise ConfigError("OpenAI judge requires an API key (judge.api_key or OPENAI_API_KEY).")
        self.model = model
        self.temperature = temperature
        try:
            self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        except Exception as e:
            raise ConfigError(f"OpenAI client initialization failed: {e}") from e
        logger.debug("OpenAI judge initialized with model '%s'", model)

    def get_name(self) -> str:
        return "openai"

    async def _complete_json(self, system: str, user: str) -> Dict[str, Any]:
        try:
            resp = await self._client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
        except OpenAIError as e:
            logger.warning("OpenAI judge request failed: %s", e)
            raise UpstreamError("judge", f"OpenAI request failed: {e}", cause=e) from e
        content = resp.choices[0].message.content if resp.choices else None
        return _parse_json_object(content)

    async def generate_questions(self, title: str, scope: Optional[str] = None) -> QuestionPair:
        user = f"GOAL_TITLE: {title}\nGOAL_SCOPE: {scope or '(none)'}\nWrite two questions."
        payload = await self._complete_json(QUESTIONS_SYSTEM_PROMPT, user)
        return normalize_questions(payload, title, scope)

    async def _grade_answer(self, title: str, scope: Optional[str], question: str, answer: str) -> Verdict:
        user = json.dumps({"title": title, "scope": scope, "question": question, "answer": answer}, indent=2)
        payload = await self._complete_json(GRADE_SYSTEM_PROMPT, user)
        return _parse_verdict(payload)

    async def diagnose(self) -> Dict[str, Any]:
        """Ping the model with a tiny JSON request and report the outcome."""
        info: Dict[str, Any] = {"judge": self.get_name(), "using_mocks": False, "model": self.model}
        try:
            payload = await self._complete_json('Return ONLY this JSON: {"pong":true}', "ping")
            info.update(ok=True, sample_response=payload)
        except UpstreamError as e:
            cause = e.cause
            info.update(
                ok=False,
                error_name=type(cause).__name__ if cause else type(e).__name__,
                error_message=str(cause or e),
                error_status=getattr(cause, "status_code", None),
                hint="429 usually means billing/quota or wrong project.",
            )
        return info

    async def close(self) -> None:
        await self._client.close()
