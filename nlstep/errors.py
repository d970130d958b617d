"""Error taxonomy for translation, resolution, execution and artifact storage."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class TranslationErrorKind(str, Enum):
    BACKEND_ERROR = "BackendError"
    INVALID_RESPONSE = "InvalidResponse"
    AMBIGUOUS_MATCH = "AmbiguousMatch"
    NO_MATCH = "NoMatch"


class ResolutionErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    AMBIGUOUS = "Ambiguous"
    INVALID_PATH = "InvalidPath"


class ExecutionErrorKind(str, Enum):
    LOCATOR_FAILED = "LocatorFailed"
    ACTION_FAILED = "ActionFailed"


class ArtifactErrorKind(str, Enum):
    LOAD_FAILED = "LoadFailed"
    SAVE_FAILED = "SaveFailed"


class NlStepError(Exception):
    """Base class for all errors raised by the framework."""

    category = "Error"

    def __init__(self, kind: Enum, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f"{self.category}{{{self.kind.value}}}: {self.message}"


class TranslationError(NlStepError):
    category = "TranslationError"

    def __init__(self, kind: TranslationErrorKind, message: str):
        super().__init__(kind, message)


class ResolutionError(NlStepError):
    category = "ResolutionError"

    def __init__(self, kind: ResolutionErrorKind, message: str):
        super().__init__(kind, message)


class ExecutionError(NlStepError):
    category = "ExecutionError"

    def __init__(
        self,
        kind: ExecutionErrorKind,
        message: str,
        action_kind: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(kind, message)
        self.action_kind = action_kind
        self.cause = cause


class ArtifactError(NlStepError):
    category = "ArtifactError"

    def __init__(self, kind: ArtifactErrorKind, message: str, path: str = ""):
        super().__init__(kind, message)
        self.path = path


class BackendError(Exception):
    """Transport or provider failure inside a language-model backend."""


class ConfigurationError(EnvironmentError):
    """Required configuration (e.g. provider credentials) is missing."""
