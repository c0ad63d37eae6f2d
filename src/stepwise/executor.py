# executor.py
# Turns a recorded Step into file-store calls and context bookkeeping.
#
# execute() is a generator so the orchestrator can publish the "*ing" event
# before the mutation starts and the "*ed" event only once it has succeeded.

import logging
from collections.abc import Iterator

from stepwise.collaborators import FileStore
from stepwise.events import (
    AgentEvent,
    CompleteEvent,
    FileCreatedEvent,
    FileCreatingEvent,
    FileDeletedEvent,
    FileDeletingEvent,
    FileUpdatedEvent,
    FileUpdatingEvent,
    PlanningEvent,
    ThinkingEvent,
)
from stepwise.models import ActionType, AgentContext, Step
from stepwise.parser import get_file_name

logger = logging.getLogger(__name__)


class ActionExecutor:
    def __init__(self, file_store: FileStore) -> None:
        self._files = file_store

    def execute(self, context: AgentContext, step: Step) -> Iterator[AgentEvent]:
        match step.action:
            case ActionType.PLAN:
                yield PlanningEvent(message=step.reasoning)
            case ActionType.ANALYZE:
                yield ThinkingEvent(message=step.reasoning)
            case ActionType.CREATE_FILE:
                yield from self._create(context, step)
            case ActionType.UPDATE_FILE:
                yield from self._update(context, step)
            case ActionType.DELETE_FILE:
                yield from self._delete(context, step)
            case ActionType.COMPLETE:
                context.is_complete = True
                yield completion_event(context, step.reasoning)

    # ------------------------------------------------------------------
    # File actions
    # ------------------------------------------------------------------

    def _create(self, context: AgentContext, step: Step) -> Iterator[AgentEvent]:
        if not (step.target and step.content):
            logger.debug("Step %d: create_file without target or content, skipped", step.step_number)
            return
        file_name = get_file_name(step.target)
        yield FileCreatingEvent(path=step.target, file_name=file_name)
        self._files.upsert(step.target, step.content)
        context.files_created.append(file_name)
        yield FileCreatedEvent(path=step.target, file_name=file_name)

    def _update(self, context: AgentContext, step: Step) -> Iterator[AgentEvent]:
        if not (step.target and step.content):
            logger.debug("Step %d: update_file without target or content, skipped", step.step_number)
            return
        file_name = get_file_name(step.target)
        yield FileUpdatingEvent(path=step.target, file_name=file_name)
        self._files.upsert(step.target, step.content)
        context.files_updated.append(file_name)
        yield FileUpdatedEvent(path=step.target, file_name=file_name)

    def _delete(self, context: AgentContext, step: Step) -> Iterator[AgentEvent]:
        if not step.target:
            logger.debug("Step %d: delete_file without target, skipped", step.step_number)
            return
        file_name = get_file_name(step.target)
        yield FileDeletingEvent(path=step.target, file_name=file_name)

        # Not atomic: the listing and the delete are separate round trips.
        file_id = self._resolve_id(step.target)
        if file_id is None:
            logger.debug("Step %d: no file at %s, delete skipped", step.step_number, step.target)
        else:
            self._files.delete(file_id)

        context.files_deleted.append(file_name)
        yield FileDeletedEvent(path=step.target, file_name=file_name)

    def _resolve_id(self, path: str) -> str | None:
        for entry in self._files.list():
            if entry.path == path:
                return entry.id
        return None


def completion_event(context: AgentContext, summary: str) -> CompleteEvent:
    """Terminal event carrying copies of the accumulated file-name lists."""
    return CompleteEvent(
        summary=summary,
        files_created=list(context.files_created),
        files_updated=list(context.files_updated),
        files_deleted=list(context.files_deleted),
    )
