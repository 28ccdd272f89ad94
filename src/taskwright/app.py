from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .automation import CommandPipeline
from .errors import record_error
from .logging_setup import configure_logging
from .models import (
    CommandRequest,
    ExecutionResultResponse,
    HealthResponse,
    LLMHealthResponse,
)
from .providers import OllamaProvider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    """Lifespan context for startup/shutdown."""
    configure_logging()
    yield


app = FastAPI(
    title="Taskwright",
    version=__version__,
    description=(
        "Free-text project and task commands. A local model turns each "
        "instruction into a structured plan that is validated, then executed "
        "against the project backend."
    ),
    lifespan=lifespan,
)


@lru_cache(maxsize=1)
def get_pipeline() -> CommandPipeline:
    return CommandPipeline.from_settings()


@lru_cache(maxsize=1)
def get_provider() -> OllamaProvider:
    return OllamaProvider()


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception in request %s %s", request.method, request.url.path)
    record_error(
        source="taskwright",
        operation="fastapi_request",
        exc=exc,
        context={"method": request.method, "path": request.url.path},
    )
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "Internal error. See .taskwright-data/taskwright.log for details.",
        },
    )


@app.get("/")
def root() -> dict[str, str]:
    return {
        "name": "Taskwright",
        "health": "/health",
        "llm_health": "/llm/health",
        "commands": "/commands",
    }


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse()


@app.get("/llm/health", response_model=LLMHealthResponse)
def llm_health(
    provider: Annotated[OllamaProvider, Depends(get_provider)],
) -> LLMHealthResponse:
    health = provider.check_health()
    return LLMHealthResponse(
        reachable=health.reachable,
        ready=health.reachable and health.current_model is not None,
        model_count=health.model_count,
        current_model=health.current_model,
        error=health.error,
    )


@app.post("/commands", response_model=ExecutionResultResponse)
def run_command(
    request: CommandRequest,
    pipeline: Annotated[CommandPipeline, Depends(get_pipeline)],
) -> ExecutionResultResponse:
    result = pipeline.process_command(request.text, preview=request.preview)
    return ExecutionResultResponse.from_result(result)
