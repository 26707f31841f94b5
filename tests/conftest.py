"""Shared fixtures: throwaway SQLite database, scripted model backend, HTTP/WS clients."""

import os
import tempfile
from pathlib import Path

_tmp = Path(tempfile.mkdtemp(prefix="boardmate-tests-"))
os.environ["BOARDMATE_ENV"] = "test"
os.environ["BOARDMATE_DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp / 'test.db'}"
os.environ["BOARDMATE_IMAGES_DIR"] = str(_tmp / "images")
os.environ["BOARDMATE_TOOL_ITERATION_DELAY"] = "0"
os.environ["BOARDMATE_CHUNK_SEND_DELAY"] = "0"
os.environ["BOARDMATE_LLM_TIMEOUT"] = "10"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.adapters.base import LanguageModelBackend  # noqa: E402
from app.database import async_session, close_db, init_db  # noqa: E402
from app.main import create_app  # noqa: E402
from app.orchestration.types import ModelResponse, ToolCall  # noqa: E402


class ScriptedBackend(LanguageModelBackend):
    """Replays canned responses; records every conversation it was sent."""

    name = "scripted"

    def __init__(self, responses=None, default=None):
        self.responses = list(responses or [])
        self.default = default or ModelResponse(text_parts=["Done."])
        self.calls = []
        self.system_prompts = []

    def script(self, *responses):
        self.responses.extend(responses)

    async def complete(self, system_prompt, messages, tools):
        self.system_prompts.append(system_prompt)
        self.calls.append(list(messages))
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, Exception):
            raise item
        return item


def text_response(*parts: str) -> ModelResponse:
    return ModelResponse(text_parts=list(parts), stop_reason="stop")


def tool_response(*calls: ToolCall, text: str = "") -> ModelResponse:
    return ModelResponse(text_parts=[text] if text else [], tool_calls=list(calls), stop_reason="tool_use")


@pytest.fixture
def images_dir() -> Path:
    return _tmp / "images"


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def app(backend):
    return create_app(backend=backend)


@pytest_asyncio.fixture
async def client(app):
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac


@pytest.fixture
def ws_client(app):
    with TestClient(app) as tc:
        yield tc


@pytest_asyncio.fixture
async def db():
    await init_db()
    async with async_session() as session:
        yield session
    await close_db()
