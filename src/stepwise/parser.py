# parser.py
# Tolerant parser for single-action model responses.
#
# Model output is unreliable free text. Nothing in here raises: anything that
# cannot be understood degrades to a `plan` action with no target, which the
# executor treats as a no-op.

import re

from stepwise.models import ActionType, ParsedResponse

_FIELD_PREFIXES = ("TARGET:", "REASONING:")
_VALID_ACTIONS = {action.value: action for action in ActionType}

_SEPARATOR = re.compile(r"^[ \t]*---[ \t]*$", re.MULTILINE)

# Legacy marker blocks, tried in this order.
_LEGACY_CREATE = re.compile(r":::CREATE_FILE\s+([^\n]+)\n(.*?):::END_FILE", re.DOTALL)
_LEGACY_UPDATE = re.compile(r":::UPDATE_FILE\s+([^\n]+)\n(.*?):::END_FILE", re.DOTALL)
_LEGACY_DELETE = re.compile(r":::DELETE_FILE\s+([^\n]+)")


def get_file_name(path: str) -> str:
    """Base name of a slash-separated project path."""
    return path.split("/")[-1] or path


def _structured_fields(text: str) -> dict[str, str]:
    """Collect the last value seen for each field prefix."""
    fields: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        for prefix in _FIELD_PREFIXES:
            if stripped.startswith(prefix):
                fields[prefix] = stripped[len(prefix):].strip()
                break
    return fields


def _content_after_separator(text: str) -> str | None:
    match = _SEPARATOR.search(text)
    if not match:
        return None
    content = text[match.end():].strip()
    return content or None


def _legacy_fallback(text: str) -> ParsedResponse | None:
    match = _LEGACY_CREATE.search(text)
    if match:
        target = match.group(1).strip()
        return ParsedResponse(
            action=ActionType.CREATE_FILE,
            target=target,
            content=match.group(2).strip(),
            reasoning=f"Creating file: {target}",
        )

    match = _LEGACY_UPDATE.search(text)
    if match:
        target = match.group(1).strip()
        return ParsedResponse(
            action=ActionType.UPDATE_FILE,
            target=target,
            content=match.group(2).strip(),
            reasoning=f"Updating file: {target}",
        )

    match = _LEGACY_DELETE.search(text)
    if match:
        target = match.group(1).strip()
        return ParsedResponse(
            action=ActionType.DELETE_FILE,
            target=target,
            content=None,
            reasoning=f"Deleting file: {target}",
        )

    return None


def parse_agent_response(text: str) -> ParsedResponse:
    """
    Map one raw completion to a ParsedResponse.

    Expected shape:

        ACTION: create_file
        TARGET: src/Main.java
        REASONING: one line
        ---
        <file content>

    When no valid ACTION is found the older :::CREATE_FILE / :::UPDATE_FILE /
    :::DELETE_FILE marker blocks are tried before settling on `plan`.
    """
    if not isinstance(text, str):
        text = "" if text is None else str(text)

    fields = _structured_fields(text)

    action = ActionType.PLAN
    recognised = False
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("ACTION:"):
            candidate = stripped[len("ACTION:"):].strip().lower()
            # An unrecognised ACTION line never overrides an earlier valid one.
            if candidate in _VALID_ACTIONS:
                action = _VALID_ACTIONS[candidate]
                recognised = True

    # Without a recognised ACTION the response is a no-op plan with no target.
    target = fields.get("TARGET:") if recognised else None
    if target in ("", "none"):
        target = None

    parsed = ParsedResponse(
        action=action,
        target=target,
        reasoning=fields.get("REASONING:", ""),
        content=_content_after_separator(text),
    )

    if parsed.action is ActionType.PLAN:
        legacy = _legacy_fallback(text)
        if legacy is not None:
            return legacy

    return parsed
