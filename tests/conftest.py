"""Shared fixtures for the stepwise tests."""

from unittest.mock import MagicMock

import pytest

from stepwise.config import LoopConfig
from stepwise.cooldown import CooldownScheduler
from stepwise.models import AgentContext
from stepwise.orchestrator import AgentOrchestrator


def reply(action: str, target: str = "none", reasoning: str = "", content: str | None = None) -> str:
    """Render a well-formed single-action model response."""
    text = f"ACTION: {action}\nTARGET: {target}\nREASONING: {reasoning}\n"
    if content is not None:
        text += f"---\n{content}\n"
    return text


@pytest.fixture
def context() -> AgentContext:
    return AgentContext(session_id=7, task="create teleport command", model_name="test-model")


@pytest.fixture
def chat_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def file_store() -> MagicMock:
    store = MagicMock()
    store.list.return_value = []
    return store


@pytest.fixture
def prompt_builder() -> MagicMock:
    builder = MagicMock()
    builder.build.return_value = "SYSTEM PROMPT"
    return builder


@pytest.fixture
def make_orchestrator(chat_client, file_store, prompt_builder):
    """Orchestrator with 2-second cooldowns that tick instantly."""

    def _make(max_steps: int = 3, history=None) -> AgentOrchestrator:
        config = LoopConfig(max_steps=max_steps, min_cooldown_ms=2000, max_cooldown_ms=2000)
        return AgentOrchestrator(
            chat_client=chat_client,
            file_store=file_store,
            prompt_builder=prompt_builder,
            history=history,
            config=config,
            cooldown=CooldownScheduler(2000, 2000, tick_seconds=0),
        )

    return _make
