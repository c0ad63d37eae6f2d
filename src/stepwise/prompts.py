# prompts.py
# System prompt for one agentic step.
#
# The base prompt is opaque to the loop: a fixed string or a callable that
# fetches it (e.g. SessionApi.system_prompt). The step block appended here is
# what makes the model answer with exactly one parseable action.

from collections.abc import Callable

DEFAULT_BASE_PROMPT = """\
You are an autonomous software engineer working inside a project workspace.
You write complete, production-ready files and never leave placeholders.\
"""

AGENTIC_CONSTRAINTS = """

## AGENTIC EXECUTION MODE (STEP {step_number})

You are operating in multi-step execution mode. You can ONLY perform ONE action per response.

### Current Progress
- Files created: {created}
- Files updated: {updated}
- Current step: {step_number}

### Available Actions
Pick exactly ONE action for this response:

1. **PLAN** - Outline what you will do next (no file changes)
2. **CREATE_FILE** - Create a single new file
3. **UPDATE_FILE** - Replace the content of an existing file
4. **DELETE_FILE** - Delete a file
5. **ANALYZE** - Read and analyze files
6. **COMPLETE** - Signal that the task is finished

### Response Format (REQUIRED)
You MUST respond in this EXACT format:

ACTION: <action_type>
TARGET: <file_path or "none">
REASONING: <one-line explanation of what you're doing>
---
<full file content if ACTION is CREATE_FILE or UPDATE_FILE>

### Rules
- ONE action per response only
- Put file content after the --- separator, never in the reasoning
- Keep reasoning brief (one line)
- Use TARGET: none for PLAN, ANALYZE and COMPLETE
"""


def _names(names: list[str]) -> str:
    return ", ".join(names) if names else "none yet"


class AgenticPromptBuilder:
    """Base prompt plus the single-action step constraints."""

    def __init__(self, base_prompt: str | Callable[[int, str], str] = DEFAULT_BASE_PROMPT) -> None:
        self._base_prompt = base_prompt

    def _base(self, session_id: int, mode: str) -> str:
        if callable(self._base_prompt):
            return self._base_prompt(session_id, mode) or ""
        return self._base_prompt

    def build(
        self,
        session_id: int,
        mode: str,
        step_number: int,
        created_names: list[str],
        updated_names: list[str],
    ) -> str:
        return self._base(session_id, mode) + AGENTIC_CONSTRAINTS.format(
            step_number=step_number,
            created=_names(created_names),
            updated=_names(updated_names),
        )
