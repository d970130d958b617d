"""Tests for translator response validation."""

import pytest

from nlstep.errors import TranslationError, TranslationErrorKind
from nlstep.models.actions import ActionKind, LocatorStrategy
from nlstep.translator.schema_validator import (
    build_error_response,
    build_ok_response,
    classify_error,
    parse_translation_response,
)


def _ok(*actions):
    return {"status": "OK", "actions": list(actions)}


class TestClassifyError:
    def test_reason_wins(self):
        assert classify_error("several things", "NoMatch") == TranslationErrorKind.NO_MATCH
        assert classify_error("nothing", "ambiguousmatch") == TranslationErrorKind.AMBIGUOUS_MATCH

    @pytest.mark.parametrize("message", [
        "The step is ambiguous",
        "Multiple buttons match",
        "More than one node fits",
    ])
    def test_ambiguity_hints(self, message):
        assert classify_error(message) == TranslationErrorKind.AMBIGUOUS_MATCH

    def test_defaults_to_no_match(self):
        assert classify_error("No login button on screen") == TranslationErrorKind.NO_MATCH

    def test_unknown_reason_falls_back_to_message(self):
        assert classify_error("two matches, ambiguous", "Whatever") == TranslationErrorKind.AMBIGUOUS_MATCH


class TestParseTranslationResponse:
    def test_ok_with_multiple_actions(self):
        actions = parse_translation_response(_ok(
            {"action": "typeText", "value": "a@b.c", "locator": {"strategy": "stableTag", "value": "email"}},
            {"action": "click", "value": None, "locator": {"strategy": "text", "value": "Submit"}},
        ))
        assert [a.kind for a in actions] == [ActionKind.TYPE_TEXT, ActionKind.CLICK]
        assert actions[1].locator.strategy == LocatorStrategy.TEXT

    def test_error_status(self):
        with pytest.raises(TranslationError) as exc_info:
            parse_translation_response({"status": "Error", "reason": "AmbiguousMatch", "message": "two Save buttons"})
        assert exc_info.value.kind == TranslationErrorKind.AMBIGUOUS_MATCH
        assert exc_info.value.message == "two Save buttons"

    def test_error_without_message(self):
        with pytest.raises(TranslationError) as exc_info:
            parse_translation_response({"status": "Error"})
        assert exc_info.value.kind == TranslationErrorKind.NO_MATCH

    @pytest.mark.parametrize("data", [
        ["not", "an", "object"],
        {"status": "Maybe", "actions": []},
        {"actions": []},
        {"status": "OK"},
        {"status": "OK", "actions": "click"},
    ])
    def test_invalid_shapes(self, data):
        with pytest.raises(TranslationError) as exc_info:
            parse_translation_response(data)
        assert exc_info.value.kind == TranslationErrorKind.INVALID_RESPONSE

    def test_ok_with_no_actions(self):
        assert parse_translation_response({"status": "OK", "actions": []}) == []

    def test_invalid_action_reports_index(self):
        with pytest.raises(TranslationError, match="action 1"):
            parse_translation_response(_ok(
                {"action": "click", "locator": {"strategy": "text", "value": "OK"}},
                {"action": "assertText", "locator": {"strategy": "text", "value": "Done"}},
            ))

    def test_bad_hierarchy_path_is_invalid_response(self):
        with pytest.raises(TranslationError) as exc_info:
            parse_translation_response(_ok(
                {"action": "click", "locator": {"strategy": "hierarchyPath", "value": "Column[0]"}},
            ))
        assert exc_info.value.kind == TranslationErrorKind.INVALID_RESPONSE


class TestBuildResponses:
    def test_ok_round_trip(self):
        data = _ok({"action": "scrollTo", "value": None,
                    "locator": {"strategy": "accessibilityDescription", "value": "Footer", "rationale": None}})
        assert build_ok_response(parse_translation_response(data)) == data

    def test_error_response(self):
        error = TranslationError(TranslationErrorKind.NO_MATCH, "nothing there")
        assert build_error_response(error) == {"status": "Error", "reason": "NoMatch", "message": "nothing there"}
