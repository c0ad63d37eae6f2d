# ai_client.py
# AI chat collaborator and quota-exhaustion detection.
#
# Providers report "out of credits" in many shapes: HTTP 402/429, an error
# code such as `insufficient_quota`, or only a sentence in the message. All of
# them are normalised to QuotaExhaustedError so the loop can pause instead of
# burning a step.

import os
import re
from typing import Any

from dotenv import load_dotenv
from openai import OpenAI

from stepwise.models import ChatMessage

load_dotenv()

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

QUOTA_MESSAGE = (
    "The current account has no remaining AI usage. "
    "Authenticate another account to continue."
)

QUOTA_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"balance",
        r"quota",
        r"exhausted",
        r"limit\s*(exceeded|reached)",
        r"insufficient",
        r"usage\s*limit",
        r"credits?\s*(depleted|exhausted|ran out)",
        r"no\s*(remaining|available)\s*(usage|credits?)",
        r"payment\s*required",
        r"upgrade\s*(required|to continue)",
        r"subscription",
        r"billing",
    )
)

BILLING_STATUS_CODES: frozenset[int] = frozenset({402, 429})


class QuotaExhaustedError(Exception):
    """The provider refused the call because the credential has no usage left."""

    def __init__(self, message: str = QUOTA_MESSAGE, original_error: BaseException | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


# ---------------------------------------------------------------------------
# Classification helpers
# ---------------------------------------------------------------------------


def _error_message(error: Any) -> str | None:
    if isinstance(error, str):
        return error
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, str):
            return inner
        if isinstance(inner, dict) and isinstance(inner.get("message"), str):
            return inner["message"]
    if isinstance(error, BaseException):
        return str(error)
    return None


def _error_status(error: Any) -> int | None:
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _error_types(error: Any) -> list[str]:
    types = [type(error).__name__]
    for attr in ("type", "code", "error_type"):
        value = getattr(error, attr, None)
        if isinstance(value, str):
            types.append(value)
    return types


def _matches_quota(text: str | None) -> bool:
    return bool(text) and any(pattern.search(text) for pattern in QUOTA_PATTERNS)


def is_quota_error(error: Any) -> bool:
    """True when `error` looks like balance / quota / billing exhaustion."""
    if isinstance(error, QuotaExhaustedError):
        return True
    if error is None:
        return False
    if _matches_quota(_error_message(error)):
        return True
    if _error_status(error) in BILLING_STATUS_CODES:
        return True
    return any(_matches_quota(value) for value in _error_types(error))


# ---------------------------------------------------------------------------
# OpenAI-compatible client
# ---------------------------------------------------------------------------


class OpenAIChatClient:
    """
    Chat collaborator backed by the OpenAI SDK, pointed at OpenRouter by default.

    Example:
        client = OpenAIChatClient()
        text = client.chat([ChatMessage(role="user", content="hi")], "anthropic/claude-3.5-haiku")
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        client: OpenAI | None = None,
    ) -> None:
        self._base_url = base_url or os.getenv("STEPWISE_BASE_URL", OPENROUTER_BASE_URL)
        self._client = client or OpenAI(
            base_url=self._base_url,
            api_key=api_key or os.getenv("OPENROUTER_API_KEY"),
        )

    def with_api_key(self, api_key: str) -> "OpenAIChatClient":
        """Fresh client for the same endpoint, e.g. when resuming after a pause."""
        return OpenAIChatClient(api_key=api_key, base_url=self._base_url)

    def chat(self, messages: list[ChatMessage], model: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=[message.model_dump() for message in messages],
            )
        except Exception as exc:
            if is_quota_error(exc):
                raise QuotaExhaustedError(original_error=exc) from exc
            raise

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()
