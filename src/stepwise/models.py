# models.py
# Data contracts for the stepwise agent loop.
# No control flow lives here: schema, validation, and the pause bookkeeping
# that must stay consistent with the Context invariants.

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Conversation window sizes.
HISTORY_LIMIT = 20
PROMPT_HISTORY_WINDOW = 10
PROMPT_STEP_WINDOW = 5


class ActionType(str, Enum):
    """The closed set of operations the model may request per step."""

    PLAN = "plan"
    CREATE_FILE = "create_file"
    UPDATE_FILE = "update_file"
    DELETE_FILE = "delete_file"
    ANALYZE = "analyze"
    COMPLETE = "complete"


class PauseReason(str, Enum):
    LOW_BALANCE = "low_balance"
    USER_CANCELLED = "user_cancelled"
    NONE = "none"


class ChatMessage(BaseModel):
    """One entry of a chat transcript sent to the AI collaborator."""

    role: Literal["system", "user", "assistant"]
    content: str


class ParsedResponse(BaseModel):
    """Structured view of a single raw model completion."""

    action: ActionType = ActionType.PLAN
    target: str | None = None
    reasoning: str = ""
    content: str | None = None


class Step(BaseModel):
    """Immutable record of one loop iteration."""

    model_config = ConfigDict(frozen=True)

    step_number: int = Field(..., ge=1, description="1-based position in the task run.")
    action: ActionType
    target: str | None = None
    reasoning: str = ""
    content: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RemoteFile(BaseModel):
    """A single entry returned by a file store listing."""

    id: str
    path: str


class AgentContext(BaseModel):
    """
    The resumable state of one task run.

    Mutated step-by-step by the orchestrator only. A paused context is handed
    to the caller for persistence (to_snapshot) and later passed back in
    (from_snapshot) to resume at the same step.
    """

    session_id: int
    task: str
    mode: Literal["agent", "plan", "question"] = "agent"
    model_name: str

    steps: list[Step] = Field(default_factory=list)
    files_created: list[str] = Field(default_factory=list)
    files_updated: list[str] = Field(default_factory=list)
    files_deleted: list[str] = Field(default_factory=list)

    is_complete: bool = False
    is_paused: bool = False
    pause_reason: PauseReason = PauseReason.NONE
    paused_at_step: int | None = Field(default=None, ge=1)
    previous_messages: list[ChatMessage] = Field(default_factory=list)
    error: str | None = None

    @field_validator("previous_messages")
    @classmethod
    def _cap_history(cls, messages: list[ChatMessage]) -> list[ChatMessage]:
        return messages[-HISTORY_LIMIT:]

    @model_validator(mode="after")
    def _check_pause_state(self) -> "AgentContext":
        pause_set = self.pause_reason is not PauseReason.NONE and self.paused_at_step is not None
        if self.is_paused != pause_set:
            raise ValueError(
                "is_paused must be true exactly when pause_reason is set and paused_at_step is known."
            )
        if self.is_paused and self.is_complete:
            raise ValueError("A context cannot be both complete and paused.")
        return self

    # ------------------------------------------------------------------
    # Pause bookkeeping
    # ------------------------------------------------------------------

    def pause(self, reason: PauseReason, step_number: int, messages: list[ChatMessage]) -> None:
        if reason is PauseReason.NONE:
            raise ValueError("Cannot pause without a reason.")
        if self.is_complete:
            raise ValueError("Cannot pause a completed context.")
        self.is_paused = True
        self.pause_reason = reason
        self.paused_at_step = step_number
        self.previous_messages = list(messages)[-HISTORY_LIMIT:]

    def clear_pause(self) -> None:
        # paused_at_step is kept; it is informational once the run restarts.
        self.is_paused = False
        self.pause_reason = PauseReason.NONE

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def to_snapshot(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_snapshot(cls, data: str | bytes) -> "AgentContext":
        return cls.model_validate_json(data)
