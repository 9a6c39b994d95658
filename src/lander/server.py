# lander: HTTP surface. /chat streams one orchestrated turn as server-sent events; /preview and /code read back the
# stored document. Every route is also mounted under /api for the existing frontend.

import datetime
from typing import AsyncIterator, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from pydantic import ValidationError

from . import document
from .context import Context
from .errors import InvalidProjectId, ProjectNotFound
from .executor import ToolExecutor
from .models import ChatRequest
from .orchestrator import AdapterFactory, TurnOrchestrator
from .settings import LanderConfig, load_config
from .storage import ProjectStore
from .tools import ToolContext


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


def _read_project(store: ProjectStore, project_id: str):
    """Return (document, None) or (None, error response)."""
    try:
        return store.read(project_id), None
    except InvalidProjectId:
        return None, _error(400, "Invalid project id")
    except ProjectNotFound:
        return None, _error(404, "Project not found")


def create_app(
    config: Optional[LanderConfig] = None,
    ctx: Optional[Context] = None,
    adapter_factory: Optional[AdapterFactory] = None,
) -> FastAPI:
    """Wire config, store, executor and orchestrator into a FastAPI app."""
    config = config or load_config()
    ctx = ctx or Context(secrets=config.secrets())
    store = ProjectStore(config.projects_dir)
    executor = ToolExecutor(
        ToolContext(
            store=store,
            ctx=ctx,
            netlify_auth_token=config.netlify_auth_token,
            netlify_bin=config.netlify_bin,
            deploy_timeout=config.deploy_timeout,
        )
    )
    orchestrator = TurnOrchestrator(config, store, executor, ctx, adapter_factory)

    app = FastAPI(title="Lander", description="Chat-driven landing page generator.")
    app.state.config = config
    app.state.store = store
    app.state.orchestrator = orchestrator
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    router = APIRouter()

    @router.post("/chat")
    async def chat(request: Request):
        try:
            body = await request.json()
            chat_request = ChatRequest.model_validate(body)
        except (ValueError, ValidationError):
            # json.JSONDecodeError is a ValueError
            return _error(400, "Message is required")

        ctx.log(
            f"Chat request: model={chat_request.model or 'default'} project={chat_request.project_id or '-'} "
            f"history={len(chat_request.conversation_history)}"
        )

        async def events() -> AsyncIterator[str]:
            async for event in orchestrator.run_turn(chat_request):
                yield event.to_sse()

        return StreamingResponse(
            events(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    @router.get("/preview/{project_id}")
    async def preview(project_id: str):
        page, err = _read_project(store, project_id)
        if err is not None:
            return err
        return HTMLResponse(content=page)

    @router.get("/code/{project_id}")
    async def code(project_id: str):
        page, err = _read_project(store, project_id)
        if err is not None:
            return err
        sections = document.parse(page)
        return {
            "success": True,
            "projectId": project_id,
            "fullHtml": page,
            "html": sections.html,
            "css": sections.css,
            "js": sections.js,
        }

    @router.get("/health")
    async def health():
        return {"status": "ok", "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat()}

    app.include_router(router)
    app.include_router(router, prefix="/api")
    return app
