"""Artifact store — one JSON file per scenario, replayed while steps are unchanged."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from nlstep.errors import ArtifactError, ArtifactErrorKind
from nlstep.models.artifact import Artifact

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".json"


class ArtifactStore:
    """Manages scenario artifact files under one directory."""

    def __init__(self, artifacts_dir: Path | str):
        self.artifacts_dir = Path(artifacts_dir)

    def path_for(self, name: str) -> Path:
        """File for a scenario name; absolute names are used as-is."""
        filename = name if name.endswith(ARTIFACT_SUFFIX) else f"{name}{ARTIFACT_SUFFIX}"
        path = Path(filename)
        if path.is_absolute():
            return path
        return self.artifacts_dir / path

    def is_contained(self, name: str) -> bool:
        """True when the file for ``name`` resolves inside the artifacts directory."""
        return self.path_for(name).resolve().is_relative_to(self.artifacts_dir.resolve())

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def load(self, name: str) -> Optional[Artifact]:
        """Load an artifact, or None when it is missing or unreadable."""
        path = self.path_for(name)
        if not path.exists():
            logger.debug("No artifact at %s", path)
            return None
        try:
            return self._read(path, name)
        except ArtifactError as e:
            logger.warning("Ignoring unreadable artifact: %s", e)
            return None

    def _read(self, path: Path, name: str) -> Artifact:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            artifact = Artifact.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise ArtifactError(
                ArtifactErrorKind.LOAD_FAILED,
                f"Failed to load artifact {path}: {e}",
                path=str(path),
            ) from e
        if not artifact.test_name:
            artifact.test_name = Path(name).stem
        return artifact

    def save(self, name: str, artifact: Artifact) -> Path:
        """Overwrite the artifact file atomically. Returns the written path."""
        path = self.path_for(name)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(artifact.to_json())
                f.write("\n")
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ArtifactError(
                ArtifactErrorKind.SAVE_FAILED,
                f"Failed to save artifact {path}: {e}",
                path=str(path),
            ) from e
        logger.info("Saved artifact %s (%d steps)", path, len(artifact.steps))
        return path

    def delete(self, name: str) -> bool:
        path = self.path_for(name)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Deleted artifact %s", path)
        return True

    def list_names(self) -> list[str]:
        if not self.artifacts_dir.exists():
            return []
        return sorted(
            str(p.relative_to(self.artifacts_dir).with_suffix(""))
            for p in self.artifacts_dir.rglob(f"*{ARTIFACT_SUFFIX}")
        )

    @staticmethod
    def is_valid(artifact: Optional[Artifact], step_descriptions: list[str]) -> bool:
        """Whole-sequence check: same step count and identical trimmed descriptions."""
        if artifact is None:
            return False
        if len(artifact.steps) != len(step_descriptions):
            return False
        return all(
            stored.description.strip() == expected.strip()
            for stored, expected in zip(artifact.steps, step_descriptions)
        )
