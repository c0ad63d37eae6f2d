from stepwise.models import ActionType
from stepwise.parser import get_file_name, parse_agent_response

# ---------------------------------------------------------------------------
# Structured format
# ---------------------------------------------------------------------------


def test_parse_structured_create_file():
    response = """ACTION: CREATE_FILE
TARGET: src/main/java/TeleportCommand.java
REASONING: Add the command executor
---
public class TeleportCommand {}
"""
    parsed = parse_agent_response(response)
    assert parsed.action is ActionType.CREATE_FILE
    assert parsed.target == "src/main/java/TeleportCommand.java"
    assert parsed.reasoning == "Add the command executor"
    assert parsed.content == "public class TeleportCommand {}"


def test_parse_target_none_normalizes():
    parsed = parse_agent_response("ACTION: plan\nTARGET: none\nREASONING: think first")
    assert parsed.action is ActionType.PLAN
    assert parsed.target is None
    assert parsed.content is None


def test_parse_empty_target_normalizes():
    parsed = parse_agent_response("ACTION: analyze\nTARGET:\nREASONING: look around")
    assert parsed.action is ActionType.ANALYZE
    assert parsed.target is None


def test_parse_last_field_occurrence_wins():
    response = "ACTION: plan\nTARGET: a.txt\nREASONING: first\nACTION: complete\nTARGET: b.txt\nREASONING: second"
    parsed = parse_agent_response(response)
    assert parsed.action is ActionType.COMPLETE
    assert parsed.target == "b.txt"
    assert parsed.reasoning == "second"


def test_parse_field_prefixes_are_case_sensitive():
    parsed = parse_agent_response("action: complete\ntarget: a.txt")
    assert parsed.action is ActionType.PLAN
    assert parsed.target is None


def test_parse_content_after_first_separator_only():
    response = "ACTION: update_file\nTARGET: README.md\nREASONING: docs\n---\n# Title\n---\nmore"
    parsed = parse_agent_response(response)
    assert parsed.content == "# Title\n---\nmore"


# ---------------------------------------------------------------------------
# Degradation
# ---------------------------------------------------------------------------


def test_parse_missing_action_defaults_to_plan():
    parsed = parse_agent_response("I think we should start with the build file.")
    assert parsed.action is ActionType.PLAN
    assert parsed.target is None
    assert parsed.reasoning == ""


def test_parse_invalid_action_defaults_to_plan():
    parsed = parse_agent_response("ACTION: rm_rf\nTARGET: /\nREASONING: oops")
    assert parsed.action is ActionType.PLAN


def test_parse_empty_and_none_input():
    assert parse_agent_response("").action is ActionType.PLAN
    assert parse_agent_response(None).action is ActionType.PLAN


# ---------------------------------------------------------------------------
# Legacy marker fallback
# ---------------------------------------------------------------------------


def test_parse_legacy_create_block():
    response = "Sure!\n:::CREATE_FILE pom.xml\n<project></project>\n:::END_FILE\n"
    parsed = parse_agent_response(response)
    assert parsed.action is ActionType.CREATE_FILE
    assert parsed.target == "pom.xml"
    assert parsed.content == "<project></project>"
    assert parsed.reasoning == "Creating file: pom.xml"


def test_parse_legacy_update_block():
    response = ":::UPDATE_FILE src/plugin.yml\nname: Teleport\n:::END_FILE"
    parsed = parse_agent_response(response)
    assert parsed.action is ActionType.UPDATE_FILE
    assert parsed.target == "src/plugin.yml"
    assert parsed.content == "name: Teleport"


def test_parse_legacy_delete_block():
    parsed = parse_agent_response(":::DELETE_FILE old/Legacy.java")
    assert parsed.action is ActionType.DELETE_FILE
    assert parsed.target == "old/Legacy.java"
    assert parsed.content is None
    assert parsed.reasoning == "Deleting file: old/Legacy.java"


def test_parse_legacy_create_wins_over_update():
    response = ":::UPDATE_FILE b.txt\nB\n:::END_FILE\n:::CREATE_FILE a.txt\nA\n:::END_FILE"
    parsed = parse_agent_response(response)
    assert parsed.action is ActionType.CREATE_FILE
    assert parsed.target == "a.txt"


def test_parse_structured_action_suppresses_legacy_fallback():
    response = "ACTION: analyze\nREASONING: reading\n:::CREATE_FILE a.txt\nA\n:::END_FILE"
    parsed = parse_agent_response(response)
    assert parsed.action is ActionType.ANALYZE
    assert parsed.target is None


def test_parse_unterminated_legacy_block_stays_plan():
    parsed = parse_agent_response(":::CREATE_FILE a.txt\nno end marker")
    assert parsed.action is ActionType.PLAN


def test_get_file_name():
    assert get_file_name("src/main/java/TeleportCommand.java") == "TeleportCommand.java"
    assert get_file_name("pom.xml") == "pom.xml"
    assert get_file_name("dir/") == "dir/"


def test_parse_target_dropped_without_recognised_action():
    parsed = parse_agent_response("TARGET: src/Main.java\nREASONING: maybe later")
    assert parsed.action is ActionType.PLAN
    assert parsed.target is None

    parsed = parse_agent_response("ACTION: teleport\nTARGET: src/Main.java")
    assert parsed.action is ActionType.PLAN
    assert parsed.target is None


def test_parse_legacy_marker_path_on_following_line():
    response = ":::CREATE_FILE\npom.xml\n<project/>\n:::END_FILE"
    parsed = parse_agent_response(response)
    assert parsed.action is ActionType.CREATE_FILE
    assert parsed.target == "pom.xml"
    assert parsed.content == "<project/>"
