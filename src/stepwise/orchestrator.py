# orchestrator.py
# Single-action agent loop.
#
# The orchestrator owns all control flow. The model only ever proposes one
# action per step; this class records it, executes it, reports progress as
# events and decides whether to continue, pause or stop.
#
# Control flow per step:
#   cancel check → system prompt → message window → AI call
#   → parse → record Step → execute action → step_complete → cooldown
#
# Quota exhaustion pauses the run and hands the context back to the caller.
# Every other failure becomes an event; nothing escapes run().

import logging
from collections.abc import Iterator

from stepwise.ai_client import QUOTA_MESSAGE, QuotaExhaustedError, is_quota_error
from stepwise.collaborators import (
    ChatClient,
    EventSink,
    FileStore,
    HistorySource,
    PauseCallback,
    PromptBuilder,
)
from stepwise.config import LoopConfig
from stepwise.cooldown import CancellationToken, CooldownScheduler
from stepwise.events import (
    AgentEvent,
    AuthRequiredEvent,
    ErrorEvent,
    PausedEvent,
    ResumingEvent,
    StepCompleteEvent,
    ThinkingEvent,
)
from stepwise.executor import ActionExecutor, completion_event
from stepwise.models import (
    HISTORY_LIMIT,
    PROMPT_HISTORY_WINDOW,
    PROMPT_STEP_WINDOW,
    AgentContext,
    ChatMessage,
    PauseReason,
    Step,
)
from stepwise.parser import parse_agent_response
from stepwise.prompts import AgenticPromptBuilder

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Execution cancelled"
INITIAL_THINKING_MESSAGE = "Analyzing your request..."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def build_messages(
    context: AgentContext, system_prompt: str, previous: list[ChatMessage]
) -> list[ChatMessage]:
    """
    Message window for one AI call: system prompt, the last 10 history
    messages, the last 5 recorded steps as assistant turns, then the task.
    """
    step_history = [
        ChatMessage(
            role="assistant",
            content=f"[Step {step.step_number}] {step.action.value}: {step.reasoning}",
        )
        for step in context.steps[-PROMPT_STEP_WINDOW:]
    ]
    return [
        ChatMessage(role="system", content=system_prompt),
        *previous[-PROMPT_HISTORY_WINDOW:],
        *step_history,
        ChatMessage(role="user", content=context.task),
    ]


def _error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class AgentOrchestrator:
    """
    Drives one task run step by step.

    All collaborators are injected; nothing is looked up from global state.

    Example:
        orchestrator = AgentOrchestrator(
            chat_client=OpenAIChatClient(),
            file_store=LocalFileStore("./workspace"),
        )
        context = AgentContext(session_id=1, task="create teleport command",
                               model_name="anthropic/claude-3.5-haiku")
        for event in orchestrator.run(context):
            print(event)
    """

    def __init__(
        self,
        chat_client: ChatClient,
        file_store: FileStore,
        prompt_builder: PromptBuilder | None = None,
        history: HistorySource | None = None,
        config: LoopConfig | None = None,
        cooldown: CooldownScheduler | None = None,
    ) -> None:
        self._chat = chat_client
        self._executor = ActionExecutor(file_store)
        self._prompts = prompt_builder or AgenticPromptBuilder()
        self._history = history
        self._config = config or LoopConfig()
        self._cooldown = cooldown or CooldownScheduler(
            self._config.min_cooldown_ms, self._config.max_cooldown_ms
        )

    @property
    def config(self) -> LoopConfig:
        return self._config

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def run(
        self,
        context: AgentContext,
        *,
        cancel: CancellationToken | None = None,
        on_event: EventSink | None = None,
        on_pause: PauseCallback | None = None,
        chat_client: ChatClient | None = None,
    ) -> Iterator[AgentEvent]:
        """
        Lazily run the task, yielding every event in order.

        Each event is handed to `on_event` first and then yielded, so the push
        and pull views always agree. A paused context resumes at the step it
        paused on. `chat_client` overrides the injected client for this run
        only.
        """
        cancel = cancel or CancellationToken()
        chat = chat_client if chat_client is not None else self._chat
        for event in self._transitions(context, chat, cancel, on_pause):
            if on_event is not None:
                on_event(event)
            yield event

    def resume(
        self,
        context: AgentContext,
        *,
        chat_client: ChatClient | None = None,
        cancel: CancellationToken | None = None,
        on_event: EventSink | None = None,
        on_pause: PauseCallback | None = None,
    ) -> Iterator[AgentEvent]:
        """Re-enter a paused context, optionally with a refreshed chat client."""
        if not context.is_paused:
            raise ValueError("Only a paused context can be resumed.")
        return self.run(
            context, cancel=cancel, on_event=on_event, on_pause=on_pause, chat_client=chat_client
        )

    def run_to_end(self, context: AgentContext, **kwargs) -> list[AgentEvent]:
        """Drain run() and return the full event list."""
        return list(self.run(context, **kwargs))

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _load_history(self, context: AgentContext) -> list[ChatMessage]:
        if self._history is None:
            return []
        try:
            messages = list(self._history(context.session_id))
        except Exception as exc:
            logger.warning("Session %s: history unavailable, continuing without it (%s)", context.session_id, exc)
            return []
        return messages[-HISTORY_LIMIT:]

    def _transitions(
        self,
        context: AgentContext,
        chat: ChatClient,
        cancel: CancellationToken,
        on_pause: PauseCallback | None,
    ) -> Iterator[AgentEvent]:
        if context.is_complete:
            logger.warning("Session %s: context is already complete, nothing to run", context.session_id)
            return

        # ── Entry: fresh start or resume ─────────────────────────────
        if context.is_paused:
            start_step = context.paused_at_step
            previous = list(context.previous_messages)
            context.clear_pause()
            logger.info("Session %s: resuming at step %d", context.session_id, start_step)
            yield ResumingEvent(step_number=start_step)
        else:
            start_step = context.steps[-1].step_number + 1 if context.steps else 1
            yield ThinkingEvent(message=INITIAL_THINKING_MESSAGE)
            previous = self._load_history(context)
            context.previous_messages = previous

        max_steps = self._config.max_steps

        for step_number in range(start_step, max_steps + 1):
            if context.is_complete:
                break

            # ── Step 1: Cooperative cancellation ─────────────────────
            if cancel.is_cancelled:
                yield ErrorEvent(message=CANCELLED_MESSAGE, recoverable=False)
                return

            # ── Steps 2-4: Prompt, message window, AI call ───────────
            try:
                system_prompt = self._prompts.build(
                    context.session_id,
                    context.mode,
                    step_number,
                    list(context.files_created),
                    list(context.files_updated),
                )
                messages = build_messages(context, system_prompt, previous)
                response = chat.chat(messages, context.model_name)
            except Exception as exc:
                if is_quota_error(exc):
                    context.pause(PauseReason.LOW_BALANCE, step_number, previous)
                    logger.info("Session %s: quota exhausted, paused at step %d", context.session_id, step_number)
                    yield AuthRequiredEvent(
                        message=str(exc) if isinstance(exc, QuotaExhaustedError) else QUOTA_MESSAGE
                    )
                    yield PausedEvent(reason=PauseReason.LOW_BALANCE, step_number=step_number)
                    if on_pause is not None:
                        on_pause(context)
                    return
                # Skip-and-continue: the failed step number is not retried.
                logger.warning("Session %s: step %d failed: %s", context.session_id, step_number, exc)
                yield ErrorEvent(message=_error_text(exc), recoverable=True)
                continue

            if cancel.is_cancelled:
                yield ErrorEvent(message=CANCELLED_MESSAGE, recoverable=False)
                return

            # ── Step 5: Parse and record ─────────────────────────────
            parsed = parse_agent_response(response)
            step = Step(
                step_number=step_number,
                action=parsed.action,
                target=parsed.target,
                reasoning=parsed.reasoning,
                content=parsed.content,
            )
            context.steps.append(step)

            # ── Step 6: Execute the action ───────────────────────────
            try:
                yield from self._executor.execute(context, step)
            except Exception as exc:
                logger.warning(
                    "Session %s: step %d %s failed: %s",
                    context.session_id,
                    step_number,
                    step.action.value,
                    exc,
                )
                yield ErrorEvent(message=_error_text(exc), recoverable=True)
                continue

            # ── Step 7: Step boundary ────────────────────────────────
            yield StepCompleteEvent(step_number=step_number, action=step.action)

            # ── Step 8: Cooldown before the next step ────────────────
            if not context.is_complete and step_number < max_steps:
                yield from self._cooldown.countdown(cancel)

        if not context.is_complete:
            yield completion_event(
                context, f"Reached maximum steps ({max_steps}). Task may be incomplete."
            )
