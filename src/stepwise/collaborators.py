# collaborators.py
# Contracts the orchestrator consumes. Concrete implementations live in
# ai_client.py, file_store.py and prompts.py; tests substitute mocks.

from collections.abc import Callable
from typing import Protocol

from stepwise.events import AgentEvent
from stepwise.models import AgentContext, ChatMessage, RemoteFile


class ChatClient(Protocol):
    def chat(self, messages: list[ChatMessage], model: str) -> str:
        """Return the completion text. Raises QuotaExhaustedError when billing stops the call."""
        ...


class FileStore(Protocol):
    def upsert(self, path: str, content: str) -> None: ...

    def list(self) -> list[RemoteFile]: ...

    def delete(self, file_id: str) -> None: ...


class PromptBuilder(Protocol):
    def build(
        self,
        session_id: int,
        mode: str,
        step_number: int,
        created_names: list[str],
        updated_names: list[str],
    ) -> str: ...


HistorySource = Callable[[int], list[ChatMessage]]
EventSink = Callable[[AgentEvent], None]
PauseCallback = Callable[[AgentContext], None]
