"""HTTP client for a translation bridge running in a separate process."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from nlstep.artifacts.store import ArtifactStore
from nlstep.errors import ArtifactError, ArtifactErrorKind, TranslationError, TranslationErrorKind
from nlstep.models.actions import Action
from nlstep.models.artifact import Artifact
from nlstep.models.semantic_tree import SemanticTreeSnapshot

from .schema_validator import parse_translation_response
from .translator import stabilize_locators

logger = logging.getLogger(__name__)


class BridgeClient:
    """Talks to the bridge's /health, /generate-command and /save-artifact."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        connect_timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def health(self) -> dict[str, Any]:
        response = self.client.get("/health")
        response.raise_for_status()
        return response.json()

    def check_health(self) -> bool:
        try:
            return self.health().get("status") == "ok"
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("Bridge health check failed: %s", e)
            return False

    def generate_command(self, user_step: str, screen_hierarchy: str) -> dict[str, Any]:
        response = self.client.post(
            "/generate-command",
            json={"userStep": user_step, "screenHierarchy": screen_hierarchy},
        )
        response.raise_for_status()
        return response.json()

    def save_artifact(self, test_name: str, artifact: Artifact) -> dict[str, Any]:
        response = self.client.post(
            "/save-artifact",
            json={"testName": test_name, "artifactJson": artifact.to_json()},
        )
        response.raise_for_status()
        return response.json()


class RemoteTranslator:
    """Translator capability backed by a bridge's /generate-command."""

    def __init__(self, client: BridgeClient):
        self.client = client
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    def translate(self, step: str, snapshot: SemanticTreeSnapshot) -> list[Action]:
        actions = self.translate_rendered(step, snapshot.render())
        return stabilize_locators(actions, snapshot)

    def translate_rendered(self, step: str, screen_hierarchy: str) -> list[Action]:
        self._call_count += 1
        logger.info("Translating via bridge %s: %s", self.client.base_url, step)
        try:
            data = self.client.generate_command(step, screen_hierarchy)
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            raise TranslationError(
                TranslationErrorKind.BACKEND_ERROR, f"Bridge request failed: {e}",
            ) from e
        return parse_translation_response(data)


class RemoteArtifactStore(ArtifactStore):
    """Reads artifacts locally and publishes saves through the bridge."""

    def __init__(self, artifacts_dir: Path | str, client: BridgeClient):
        super().__init__(artifacts_dir)
        self.client = client

    def save(self, name: str, artifact: Artifact) -> Path:
        try:
            body = self.client.save_artifact(name, artifact)
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            raise ArtifactError(
                ArtifactErrorKind.SAVE_FAILED, f"Bridge save failed for {name}: {e}",
            ) from e
        if not body.get("success"):
            raise ArtifactError(
                ArtifactErrorKind.SAVE_FAILED,
                f"Bridge refused artifact {name}: {body.get('message', 'unknown error')}",
            )
        logger.info("Bridge saved artifact %s", body.get("path"))
        return Path(body.get("path") or self.path_for(name))
