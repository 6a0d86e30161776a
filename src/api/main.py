"""FastAPI application for the zoo exhibit signboard page."""

import asyncio
import logging
import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from markupsafe import escape
from sse_starlette.sse import EventSourceResponse

from src.api.models import ErrorResponse, GenerateRequest, GenerateResponse
from src.api.orchestrator import ExhibitOrchestrator
from src.api.sse_models import (
    CompleteEvent,
    FailedEvent,
    OrchestratorEvent,
    SSEEventType,
    StatusEvent,
)
from src.chains.exhibit_generator import ExhibitGeneratorChain, GenerationError
from src.config import get_settings
from src.export.image_exporter import DownloadStore, SignboardImageExporter
from src.ui.signboard import build_signboard_view
from src.ui.state import Phase
from src.ui.utils import (
    DESCRIPTION_HEADING,
    EXPORT_BUSY_LABEL,
    EXPORT_ERROR_MESSAGE,
    EXPORT_LABEL,
    FUN_FACT_HEADING,
    GENERATION_ERROR_MESSAGE,
    INPUT_PLACEHOLDERS,
    RESET_LABEL,
    SUBMIT_LABEL,
    exhibit_file_name,
)

# Configure logging for Cloud Run
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()

# Global instances (initialized on startup)
generator: ExhibitGeneratorChain | None = None
orchestrator: ExhibitOrchestrator | None = None
download_store = DownloadStore()


def create_orchestrator(exhibit_generator: ExhibitGeneratorChain) -> ExhibitOrchestrator:
    """Build the page orchestrator from settings.

    Args:
        exhibit_generator: Generation client used for every submission.

    Returns:
        A fresh orchestrator in the IDLE phase.
    """
    exporter = SignboardImageExporter(
        download_store,
        font_path=settings.export_font_path,
        scale=settings.export_scale,
    )
    return ExhibitOrchestrator(
        exhibit_generator,
        exporter,
        rotation_interval=settings.status_rotation_interval_seconds,
        generation_timeout=settings.generation_timeout,
        export_timeout=settings.export_timeout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize and cleanup resources."""
    global generator, orchestrator

    logger.info("Initializing API resources...")
    generator = ExhibitGeneratorChain()
    orchestrator = create_orchestrator(generator)

    yield

    logger.info("Cleaning up API resources...")
    await orchestrator.aclose()


app = FastAPI(
    title="Zoo Exhibit Signboard API",
    description="Generates zoo exhibit signboards describing people as animals",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Configure templates and static files
BASE_DIR = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates.env.globals.update(
    submit_label=SUBMIT_LABEL,
    reset_label=RESET_LABEL,
    export_idle_label=EXPORT_LABEL,
    export_busy_label=EXPORT_BUSY_LABEL,
    export_error_message=EXPORT_ERROR_MESSAGE,
    placeholders=INPUT_PLACEHOLDERS,
    description_heading=DESCRIPTION_HEADING,
    fun_fact_heading=FUN_FACT_HEADING,
)
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
app.state.templates = templates


def _require_orchestrator() -> ExhibitOrchestrator:
    if orchestrator is None:
        raise HTTPException(status_code=500, detail="Orchestrator not initialized")
    return orchestrator


def stage_context(orch: ExhibitOrchestrator) -> tuple[str, dict[str, Any]]:
    """Pick the partial and context for the current interaction state.

    In RESULT a fresh signboard view is built and attached to the
    orchestrator, so the export always targets what was last rendered.

    Args:
        orch: The page orchestrator.

    Returns:
        Template name and its context.
    """
    state = orch.state
    context: dict[str, Any] = {"state": state, "draft": orch.draft}

    if state.phase is Phase.LOADING:
        context["status_message"] = orch.status_message
        return "partials/loading.html", context

    if state.phase is Phase.RESULT and state.result is not None:
        view = build_signboard_view(
            state.result,
            orch.draft.name,
            delay_ms=settings.stat_animation_delay_ms,
            duration_ms=settings.stat_animation_duration_ms,
        )
        orch.attach_signboard(view)
        context["view"] = view
        context["export_label"] = orch.export_label
        return "partials/signboard.html", context

    if state.phase is Phase.FAILED:
        context["error_message"] = state.error_message
        return "partials/error.html", context

    return "partials/form.html", context


def render_stage(orch: ExhibitOrchestrator) -> str:
    """Render the current stage partial to an HTML string."""
    template_name, context = stage_context(orch)
    return templates.env.get_template(template_name).render(**context)


def _stage_response(request: Request, orch: ExhibitOrchestrator):
    template_name, context = stage_context(orch)
    return templates.TemplateResponse(request, template_name, context)


@app.get("/")
async def index(request: Request):
    """Render the single page from the current interaction state."""
    orch = _require_orchestrator()
    template_name, context = stage_context(orch)
    context["stage_template"] = template_name
    return templates.TemplateResponse(request, "index.html", context)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/ui/submit")
async def ui_submit(request: Request):
    """Update the draft from the form and start generation.

    Returns the loading partial on success. A rejected submission (blank
    field, or a generation already in flight) re-renders the current stage
    without changing state.

    Args:
        request: FastAPI request with form data.

    Returns:
        HTML partial for the stage container.
    """
    orch = _require_orchestrator()
    form_data = await request.form()

    orch.edit_draft(
        name=str(form_data.get("name", "")),
        hobby=str(form_data.get("hobby", "")),
        worry=str(form_data.get("worry", "")),
    )
    orch.submit()

    return _stage_response(request, orch)


@app.post("/ui/reset")
async def ui_reset(request: Request):
    """Discard the current signboard and show the form again."""
    orch = _require_orchestrator()
    orch.reset()
    return _stage_response(request, orch)


@app.post("/ui/export")
async def ui_export(request: Request):
    """Export the signboard on screen as a PNG attachment.

    Returns:
        The PNG file, or a 422 JSON error the page turns into an alert.

    Raises:
        HTTPException: 409 if there is no signboard or an export is running.
    """
    orch = _require_orchestrator()
    if orch.signboard is None:
        raise HTTPException(status_code=409, detail="No signboard to export")
    if orch.is_exporting:
        raise HTTPException(status_code=409, detail="Export already in progress")

    file_name = exhibit_file_name()
    success = await orch.export(file_name)
    data = download_store.pop(file_name) if success else None
    if data is None:
        error = ErrorResponse(error="export_failed", detail=EXPORT_ERROR_MESSAGE)
        return JSONResponse(status_code=422, content=error.model_dump())

    return Response(
        content=data,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


def _to_sse(event: OrchestratorEvent, orch: ExhibitOrchestrator) -> dict[str, str]:
    if isinstance(event, StatusEvent):
        return {"event": SSEEventType.STATUS.value, "data": str(escape(event.message))}
    if isinstance(event, CompleteEvent):
        return {"event": SSEEventType.COMPLETE.value, "data": render_stage(orch)}
    return {"event": SSEEventType.FAILED.value, "data": render_stage(orch)}


async def stream_events(
    orch: ExhibitOrchestrator,
    is_disconnected: Callable[[], Awaitable[bool]],
    to_sse: Callable[[OrchestratorEvent, ExhibitOrchestrator], dict[str, str]] = _to_sse,
) -> AsyncGenerator[dict[str, str], None]:
    """Yield SSE messages for the loading stage until generation settles.

    The current state is sent first so late joiners catch up. A final
    ``done`` event tells the page to close the connection.

    Args:
        orch: The page orchestrator.
        is_disconnected: Awaitable check for client disconnect.
        to_sse: Converts an orchestrator event into an SSE message.

    Yields:
        SSE message dicts with ``event`` and ``data`` keys.
    """
    queue = orch.subscribe()
    try:
        event = orch.current_event()
        while event is not None:
            yield to_sse(event, orch)
            if isinstance(event, (CompleteEvent, FailedEvent)):
                break

            event = None
            while event is None:
                if await is_disconnected():
                    logger.info("Client disconnected from exhibit event stream")
                    return
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=1.0)
                except TimeoutError:
                    continue

        yield {"event": SSEEventType.DONE.value, "data": ""}
    finally:
        orch.unsubscribe(queue)


@app.get("/ui/events")
async def ui_events(request: Request) -> EventSourceResponse:
    """Stream loading status and the final stage via SSE."""
    orch = _require_orchestrator()
    return EventSourceResponse(stream_events(orch, request.is_disconnected))


@app.post(
    "/generate",
    response_model=GenerateResponse,
    responses={502: {"model": ErrorResponse}},
)
async def generate_exhibit(body: GenerateRequest):
    """Generate exhibit signboard data as JSON.

    Args:
        body: Name, hobby and worry of the person to exhibit.

    Returns:
        Generated exhibit data with camelCase keys.
    """
    if generator is None:
        raise HTTPException(status_code=500, detail="Generator not initialized")

    try:
        data = await generator.agenerate(body.to_user_input())
    except GenerationError:
        logger.exception("Error generating exhibit")
        error = ErrorResponse(error="generation_failed", detail=GENERATION_ERROR_MESSAGE)
        return JSONResponse(status_code=502, content=error.model_dump())

    return GenerateResponse.model_validate(data.model_dump(by_alias=True))

