import pytest
from pydantic import ValidationError

from stepwise.events import CompleteEvent, CooldownEvent, FileCreatedEvent, parse_event
from stepwise.models import ActionType, AgentContext, ChatMessage, PauseReason, Step

# ---------------------------------------------------------------------------
# Step
# ---------------------------------------------------------------------------


def test_step_is_immutable():
    step = Step(step_number=1, action=ActionType.PLAN, reasoning="think")
    with pytest.raises(ValidationError):
        step.reasoning = "changed"


def test_step_number_must_be_positive():
    with pytest.raises(ValidationError):
        Step(step_number=0, action=ActionType.PLAN)


# ---------------------------------------------------------------------------
# Context invariants
# ---------------------------------------------------------------------------


def test_context_defaults(context):
    assert context.mode == "agent"
    assert context.steps == []
    assert not context.is_complete
    assert not context.is_paused
    assert context.pause_reason is PauseReason.NONE


def test_context_paused_requires_reason_and_step():
    with pytest.raises(ValidationError, match="is_paused"):
        AgentContext(session_id=1, task="t", model_name="m", is_paused=True)


def test_context_reason_without_paused_flag_is_rejected():
    with pytest.raises(ValidationError, match="is_paused"):
        AgentContext(
            session_id=1,
            task="t",
            model_name="m",
            pause_reason=PauseReason.LOW_BALANCE,
            paused_at_step=3,
        )


def test_context_cannot_be_complete_and_paused():
    with pytest.raises(ValidationError, match="both complete and paused"):
        AgentContext(
            session_id=1,
            task="t",
            model_name="m",
            is_complete=True,
            is_paused=True,
            pause_reason=PauseReason.LOW_BALANCE,
            paused_at_step=2,
        )


def test_context_history_capped_at_load():
    messages = [ChatMessage(role="user", content=str(i)) for i in range(30)]
    context = AgentContext(session_id=1, task="t", model_name="m", previous_messages=messages)
    assert len(context.previous_messages) == 20
    assert context.previous_messages[0].content == "10"


def test_pause_and_clear_pause(context):
    history = [ChatMessage(role="user", content="hello")]
    context.pause(PauseReason.LOW_BALANCE, 4, history)
    assert context.is_paused
    assert context.pause_reason is PauseReason.LOW_BALANCE
    assert context.paused_at_step == 4
    assert context.previous_messages == history

    context.clear_pause()
    assert not context.is_paused
    assert context.pause_reason is PauseReason.NONE


def test_pause_rejects_completed_context(context):
    context.is_complete = True
    with pytest.raises(ValueError):
        context.pause(PauseReason.LOW_BALANCE, 1, [])


def test_snapshot_restores_paused_context(context):
    context.steps.append(Step(step_number=1, action=ActionType.CREATE_FILE, target="pom.xml", content="<p/>"))
    context.files_created.append("pom.xml")
    context.pause(PauseReason.LOW_BALANCE, 2, [ChatMessage(role="assistant", content="hi")])

    restored = AgentContext.from_snapshot(context.to_snapshot())
    assert restored.is_paused
    assert restored.paused_at_step == 2
    assert restored.steps[0].action is ActionType.CREATE_FILE
    assert restored.files_created == ["pom.xml"]
    assert restored.previous_messages[0].role == "assistant"


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def test_events_are_frozen():
    event = CooldownEvent(duration_ms=3000, remaining=3)
    with pytest.raises(ValidationError):
        event.remaining = 2


def test_parse_event_dispatches_on_type():
    event = parse_event({"type": "file_created", "path": "a/b.txt", "file_name": "b.txt"})
    assert isinstance(event, FileCreatedEvent)

    original = CompleteEvent(summary="done", files_created=["a.txt"])
    restored = parse_event(original.model_dump_json())
    assert restored == original


def test_parse_event_rejects_unknown_type():
    with pytest.raises(ValidationError):
        parse_event({"type": "teleported"})
