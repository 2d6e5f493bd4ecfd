import inspect
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from google import genai

from config import Settings, get_settings
from dal.kv_dal import KeyValueDAL
from routes.preference_route import router as preference_router
from routes.profile_route import router as profile_router
from routes.session_route import router as session_router
from services.conversation import ConversationBackend
from services.gemini.conversation import GeminiConversationBackend
from services.preferences import PreferenceService
from services.profile_store import ProfileStore
from services.session_store import SessionStore
from services.video_store import VideoStore
from utils.database_init import AsyncDatabaseInitializer

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

LOGGER = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_gemini_backend(settings: Settings) -> GeminiConversationBackend:
    """Create the Gemini client and wrap it as a conversation backend."""
    if not settings.gemini_api_key:
        raise RuntimeError("GEMINI_API_KEY environment variable is not set")

    try:
        client = genai.Client(api_key=settings.gemini_api_key)
    except Exception as exc:
        raise RuntimeError("Failed to initialize google-genai client") from exc

    return GeminiConversationBackend(client, model=settings.gemini_model)


async def init_state(
    app: FastAPI,
    settings: Settings,
    backend: Optional[ConversationBackend] = None,
) -> None:
    """
    Initialize shared services and attach them to `app.state`:
      - the SQLite database (at DATABASE_DIR/app.db) and the stores built on it
      - the video upload store
      - the conversation backend (Gemini unless one is supplied)
      - the session registry
    """
    db_initializer = AsyncDatabaseInitializer(settings.database_dir)
    await db_initializer.ensure_database()
    kv = KeyValueDAL(db_initializer)

    if backend is None:
        backend = build_gemini_backend(settings)

    video_store = VideoStore(settings.upload_dir)

    app.state.settings = settings
    app.state.db_initializer = db_initializer
    app.state.profile_store = await ProfileStore(kv).load()
    app.state.preferences = PreferenceService(kv)
    app.state.video_store = video_store
    app.state.conversation_backend = backend
    app.state.session_store = SessionStore(backend, video_store, timeout=settings.generation_timeout)


async def shutdown_state(app: FastAPI) -> None:
    """Release session-owned videos and close the generation client."""
    store = getattr(app.state, "session_store", None)
    if store is not None:
        await store.close_all()

    backend = getattr(app.state, "conversation_backend", None)
    client = getattr(backend, "client", None)
    if client is None:
        return
    # Gracefully close the client if it exposes a close/aclose method.
    aio = getattr(client, "aio", None)
    aclose = getattr(aio, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception:
        # Ignore shutdown errors to avoid masking more important issues.
        LOGGER.warning("Error while closing the generation client", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    await init_state(app, settings)
    try:
        yield
    finally:
        await shutdown_state(app)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan)

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies DB initializer and generation backend presence.
        """
        has_db = hasattr(request.app.state, "db_initializer")
        has_backend = getattr(request.app.state, "conversation_backend", None) is not None
        return {"ok": True, "db_initialized": has_db, "generation_available": has_backend}

    # Register application routers
    app.include_router(session_router)
    app.include_router(profile_router)
    app.include_router(preference_router)

    return app


app = create_app()
