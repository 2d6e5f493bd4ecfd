import asyncio
from pathlib import Path
from typing import List, Set, Tuple, Union

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from config import Settings
from dal.kv_dal import KeyValueDAL
from main import create_app, init_state, shutdown_state
from models.session_models import VideoRef
from services.conversation import TurnContent
from services.errors import RemoteGenerationError
from services.generation_session import GenerationSession
from services.video_store import VideoStore
from utils.database_init import AsyncDatabaseInitializer


class FakeConversationBackend:
    """Scripted stand-in for the Gemini backend.

    Queue strings to answer turns in order, or exceptions to fail them.
    Unscripted turns are answered with a default description.
    """

    def __init__(self) -> None:
        self.replies: List[Union[str, Exception]] = []
        self.create_error: Union[Exception, None] = None
        self.delay = 0.0
        self.system_instructions: List[str] = []
        self.sent: List[Tuple[str, TurnContent]] = []
        self.open: Set[str] = set()
        self._count = 0

    def script(self, *replies: Union[str, Exception]) -> None:
        self.replies.extend(replies)

    async def create_conversation(self, system_instruction: str) -> str:
        if self.create_error is not None:
            raise self.create_error
        self._count += 1
        handle = f"conv-{self._count}"
        self.system_instructions.append(system_instruction)
        self.open.add(handle)
        return handle

    async def send_turn(self, handle: str, content: TurnContent) -> str:
        if handle not in self.open:
            raise RemoteGenerationError(f"Conversation {handle} is not open")
        self.sent.append((handle, content))
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.replies.pop(0) if self.replies else "A default description."
        if isinstance(reply, Exception):
            raise reply
        return reply

    def close_conversation(self, handle: str) -> None:
        self.open.discard(handle)


@pytest.fixture
def backend() -> FakeConversationBackend:
    return FakeConversationBackend()


@pytest.fixture
def video_store(tmp_path: Path) -> VideoStore:
    return VideoStore(tmp_path / "uploads")


@pytest.fixture
def kv(tmp_path: Path) -> KeyValueDAL:
    return KeyValueDAL(AsyncDatabaseInitializer(tmp_path / "db"))


@pytest.fixture
def session(backend: FakeConversationBackend, video_store: VideoStore) -> GenerationSession:
    return GenerationSession(backend, video_store)


@pytest.fixture
def make_video(video_store: VideoStore):
    """Write a small file into the upload dir and describe it with the given metadata."""
    counter = {"n": 0}

    def _make(mime_type: str = "video/mp4", size: int = 1024 * 1024, filename: str = "clip.mp4") -> VideoRef:
        counter["n"] += 1
        path = video_store.upload_dir / f"video-{counter['n']}.mp4"
        path.write_bytes(b"fake video bytes")
        return VideoRef(filename=filename, mime_type=mime_type, size=size, path=path)

    return _make


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        gemini_api_key=None,
        gemini_model="test-model",
        database_dir=tmp_path / "db",
        upload_dir=tmp_path / "uploads",
        generation_timeout_seconds=5,
        log_level="DEBUG",
    )


@pytest.fixture
async def app(settings: Settings, backend: FakeConversationBackend) -> FastAPI:
    application = create_app()
    await init_state(application, settings, backend=backend)
    yield application
    await shutdown_state(application)


@pytest.fixture
async def client(app: FastAPI) -> AsyncClient:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
