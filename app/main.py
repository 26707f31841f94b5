"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.adapters.base import LanguageModelBackend
from app.adapters.factory import create_backend_or_placeholder
from app.config import settings
from app.database import close_db, init_db
from app.orchestration.executor import ToolExecutor
from app.orchestration.loop import ToolOrchestrationLoop
from app.orchestration.registry import ToolRegistry
from app.realtime.hub import ConnectionHub
from app.routers import boards, chat, realtime
from app.services.chat_workflow import ChatWorkflow
from app.tools.board_tools import register_board_tools

# ── Logging setup ────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def build_registry() -> ToolRegistry:
    registry = ToolRegistry()
    register_board_tools(registry, settings.images_dir)
    return registry


def create_app(
    backend: LanguageModelBackend | None = None,
    registry: ToolRegistry | None = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        await init_db()

        tools = registry if registry is not None else build_registry()
        model = backend if backend is not None else create_backend_or_placeholder(settings)
        loop = ToolOrchestrationLoop(
            model,
            ToolExecutor(tools),
            max_iterations=settings.max_tool_iterations,
            iteration_delay=settings.tool_iteration_delay,
            timeout=settings.llm_timeout,
        )
        hub = ConnectionHub(queue_size=settings.client_queue_size)
        hub.start()

        app.state.registry = tools
        app.state.hub = hub
        app.state.chat_workflow = ChatWorkflow(
            loop,
            history_limit=settings.chat_history_limit,
            stream_live=settings.stream_live_chunks,
            chunk_delay=settings.chunk_send_delay,
        )
        logger.info("Boardmate ready: %d tool(s), backend %s", len(tools), model.name)

        yield

        # Shutdown
        await hub.stop()
        if backend is None:
            await model.aclose()
        await close_db()

    app = FastAPI(
        title="Boardmate",
        description="Realtime drawing-board assistant with LLM tool calling",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount routers
    app.include_router(boards.router, prefix="/api/v1/boards", tags=["boards"])
    app.include_router(chat.router, prefix="/api/v1/chat", tags=["chat"])
    app.include_router(realtime.router, tags=["realtime"])

    @app.get("/health")
    async def health():
        hub: ConnectionHub | None = getattr(app.state, "hub", None)
        return {
            "status": "ok",
            "service": "boardmate",
            "clients": len(hub) if hub is not None else 0,
        }

    return app


app = create_app()
