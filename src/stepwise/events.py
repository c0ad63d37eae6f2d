# events.py
# The closed set of progress events emitted by the orchestrator.
#
# Every variant is a frozen model tagged by its `type` field. Consumers match
# over AgentEvent exhaustively; new variants are added here and nowhere else.

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from stepwise.models import ActionType, PauseReason


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class _FileEvent(_Event):
    path: str
    file_name: str


class ThinkingEvent(_Event):
    type: Literal["thinking"] = "thinking"
    message: str


class PlanningEvent(_Event):
    type: Literal["planning"] = "planning"
    message: str


class FileCreatingEvent(_FileEvent):
    type: Literal["file_creating"] = "file_creating"


class FileCreatedEvent(_FileEvent):
    type: Literal["file_created"] = "file_created"


class FileUpdatingEvent(_FileEvent):
    type: Literal["file_updating"] = "file_updating"


class FileUpdatedEvent(_FileEvent):
    type: Literal["file_updated"] = "file_updated"


class FileDeletingEvent(_FileEvent):
    type: Literal["file_deleting"] = "file_deleting"


class FileDeletedEvent(_FileEvent):
    type: Literal["file_deleted"] = "file_deleted"


class StepCompleteEvent(_Event):
    type: Literal["step_complete"] = "step_complete"
    step_number: int
    action: ActionType


class CooldownEvent(_Event):
    type: Literal["cooldown"] = "cooldown"
    duration_ms: int
    remaining: int = Field(..., description="Whole seconds left, ceil(remaining_ms / 1000).")


class CompleteEvent(_Event):
    type: Literal["complete"] = "complete"
    summary: str
    files_created: list[str] = Field(default_factory=list)
    files_updated: list[str] = Field(default_factory=list)
    files_deleted: list[str] = Field(default_factory=list)


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    message: str
    recoverable: bool


class PausedEvent(_Event):
    type: Literal["paused"] = "paused"
    reason: PauseReason
    step_number: int


class ResumingEvent(_Event):
    type: Literal["resuming"] = "resuming"
    step_number: int


class AuthRequiredEvent(_Event):
    type: Literal["auth_required"] = "auth_required"
    message: str = ""


AgentEvent = Annotated[
    Union[
        ThinkingEvent,
        PlanningEvent,
        FileCreatingEvent,
        FileCreatedEvent,
        FileUpdatingEvent,
        FileUpdatedEvent,
        FileDeletingEvent,
        FileDeletedEvent,
        StepCompleteEvent,
        CooldownEvent,
        CompleteEvent,
        ErrorEvent,
        PausedEvent,
        ResumingEvent,
        AuthRequiredEvent,
    ],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[AgentEvent] = TypeAdapter(AgentEvent)


def parse_event(data: dict[str, Any] | str | bytes) -> AgentEvent:
    """Validate a serialized event (dict or JSON) back into its variant."""
    if isinstance(data, (str, bytes)):
        return _EVENT_ADAPTER.validate_json(data)
    return _EVENT_ADAPTER.validate_python(data)
