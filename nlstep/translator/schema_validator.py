"""Validation of translator responses against the action schema."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from nlstep.errors import TranslationError, TranslationErrorKind
from nlstep.models.actions import Action

logger = logging.getLogger(__name__)

STATUS_OK = "OK"
STATUS_ERROR = "Error"

_AMBIGUOUS_HINTS = ("ambiguous", "multiple", "more than one", "several")


def classify_error(message: str, reason: str | None = None) -> TranslationErrorKind:
    """Map a backend-reported error to AmbiguousMatch or NoMatch."""
    if reason:
        for kind in (TranslationErrorKind.AMBIGUOUS_MATCH, TranslationErrorKind.NO_MATCH):
            if reason.strip().lower() == kind.value.lower():
                return kind
    lowered = (message or "").lower()
    if any(hint in lowered for hint in _AMBIGUOUS_HINTS):
        return TranslationErrorKind.AMBIGUOUS_MATCH
    return TranslationErrorKind.NO_MATCH


def parse_translation_response(data: Any) -> list[Action]:
    """Turn a decoded response object into actions, or raise TranslationError."""
    if not isinstance(data, dict):
        raise TranslationError(
            TranslationErrorKind.INVALID_RESPONSE,
            f"Expected a JSON object, got {type(data).__name__}",
        )

    status = data.get("status")
    if status == STATUS_ERROR:
        message = str(data.get("message") or "Translator reported an unspecified error")
        kind = classify_error(message, data.get("reason"))
        logger.info("Translator returned %s: %s", kind.value, message)
        raise TranslationError(kind, message)

    if status != STATUS_OK:
        raise TranslationError(
            TranslationErrorKind.INVALID_RESPONSE,
            f"Unknown status {status!r}; expected 'OK' or 'Error'",
        )

    raw_actions = data.get("actions")
    if not isinstance(raw_actions, list):
        raise TranslationError(
            TranslationErrorKind.INVALID_RESPONSE,
            "Status OK requires an 'actions' list",
        )

    actions: list[Action] = []
    for i, raw in enumerate(raw_actions):
        try:
            actions.append(Action.model_validate(raw))
        except ValidationError as e:
            errors = "; ".join(err["msg"] for err in e.errors())
            raise TranslationError(
                TranslationErrorKind.INVALID_RESPONSE,
                f"action {i}: {errors}",
            ) from e
    return actions


def build_ok_response(actions: list[Action]) -> dict:
    return {"status": STATUS_OK, "actions": [a.to_wire() for a in actions]}


def build_error_response(error: TranslationError) -> dict:
    return {"status": STATUS_ERROR, "reason": error.kind.value, "message": error.message}
