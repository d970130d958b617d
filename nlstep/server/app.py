"""Translation bridge — serves step translation and artifact saving over HTTP."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from nlstep.ai.backends import configured_providers, create_backend
from nlstep.artifacts.store import ArtifactStore
from nlstep.errors import ArtifactError, TranslationError
from nlstep.models.artifact import Artifact
from nlstep.models.config import RunnerConfig
from nlstep.translator.cache import CachingTranslator, TranslationCache
from nlstep.translator.schema_validator import build_error_response, build_ok_response
from nlstep.translator.translator import RenderedStepTranslator, Translator

logger = logging.getLogger(__name__)


class GenerateCommandRequest(BaseModel):
    userStep: str
    screenHierarchy: str


class SaveArtifactRequest(BaseModel):
    testName: str
    artifactJson: str


def create_app(
    config: RunnerConfig | None = None,
    translator_factory: Optional[Callable[[], RenderedStepTranslator]] = None,
) -> FastAPI:
    """Create the bridge application.

    The translation cache and translator are created at startup and live
    for the lifetime of the process; ``/reset`` clears the cache.
    """
    config = config or RunnerConfig()
    artifacts_dir = Path(config.artifacts_dir)
    store = ArtifactStore(artifacts_dir)

    def _default_factory() -> RenderedStepTranslator:
        return Translator(create_backend(config))

    factory = translator_factory or _default_factory

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        artifacts_dir.mkdir(parents=True, exist_ok=True)
        cache = TranslationCache()
        translator = factory()
        if config.translation_cache_enabled:
            translator = CachingTranslator(translator, cache)
        app.state.cache = cache
        app.state.translator = translator
        logger.info("Bridge ready (artifacts: %s, provider: %s)",
                    artifacts_dir.resolve(), _provider_name(translator))
        yield
        cache.clear()
        logger.info("Bridge shutting down")

    app = FastAPI(title="nlstep translation bridge", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["Content-Type"],
    )

    @app.get("/health")
    def health(request: Request):
        providers = configured_providers()
        translator = request.app.state.translator
        return {
            "status": "ok",
            "provider": _provider_name(translator),
            "model": _model_name(translator),
            "openaiConfigured": providers["openai"],
            "anthropicConfigured": providers["anthropic"],
            "artifactsDir": str(artifacts_dir.resolve()),
            "cacheEntries": len(request.app.state.cache),
        }

    # Plain (sync) handlers run in the threadpool; the backend call blocks.
    @app.post("/generate-command")
    def generate_command(body: GenerateCommandRequest, request: Request):
        logger.info("Generating: %s", body.userStep)
        try:
            actions = request.app.state.translator.translate_rendered(
                body.userStep, body.screenHierarchy,
            )
        except TranslationError as e:
            logger.warning("Translation failed: %s", e)
            return build_error_response(e)
        return build_ok_response(actions)

    @app.post("/save-artifact")
    def save_artifact(body: SaveArtifactRequest):
        if not body.testName.strip() or not store.is_contained(body.testName):
            logger.warning("Rejected artifact name outside %s: %r", store.artifacts_dir, body.testName)
            return JSONResponse(
                status_code=400,
                content={"success": False, "path": "", "message": f"Invalid test name: {body.testName!r}"},
            )
        try:
            artifact = Artifact.from_json(body.artifactJson)
        except (ValueError, ValidationError) as e:
            logger.warning("Rejected artifact %s: %s", body.testName, e)
            return JSONResponse(
                status_code=400,
                content={"success": False, "path": "", "message": f"Invalid artifact: {e}"},
            )
        if not artifact.test_name:
            artifact.test_name = Path(body.testName).stem
        try:
            path = store.save(body.testName, artifact)
        except ArtifactError as e:
            return JSONResponse(
                status_code=500,
                content={"success": False, "path": e.path, "message": e.message},
            )
        return {"success": True, "path": str(path.resolve())}

    @app.post("/reset")
    def reset(request: Request):
        request.app.state.cache.clear()
        return {"success": True}

    return app


def _provider_name(translator) -> str:
    inner = getattr(translator, "inner", translator)
    backend = getattr(inner, "backend", None)
    return getattr(backend, "name", type(inner).__name__)


def _model_name(translator) -> Optional[str]:
    inner = getattr(translator, "inner", translator)
    return getattr(getattr(inner, "backend", None), "model", None)
