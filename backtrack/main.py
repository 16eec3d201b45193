from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv

from backtrack.core.config import Settings
from backtrack.core.context import AppContext
from backtrack.core.errors import register_error_handlers
from backtrack.core.logging_config import setup_logging
from backtrack.db.db import init_db, make_engine
from backtrack.routers import auth, items, verifications
from backtrack.utils.media_store import LocalMediaStore, MediaStore, build_media_store


def create_app(settings: Optional[Settings] = None, media: Optional[MediaStore] = None) -> FastAPI:
    """Build the API; run with ``uvicorn backtrack.main:create_app --factory``."""
    if settings is None:
        load_dotenv()
        settings = Settings()

    setup_logging(settings.log_level, settings.log_file)

    if not settings.jwt_secret:
        raise ValueError("JWT_SECRET environment variable not set")

    engine = make_engine(settings.database_url)
    init_db(engine)

    media = media or build_media_store(settings)

    app = FastAPI(title=settings.project_name)
    app.state.context = AppContext(settings=settings, engine=engine, media=media)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Register routers
    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(items.router, prefix="/items", tags=["Items"])
    app.include_router(verifications.router, prefix="/verifications", tags=["Verifications"])

    if isinstance(media, LocalMediaStore) and settings.media_base_url.startswith("/"):
        app.mount(settings.media_base_url, StaticFiles(directory=str(media.root)), name="uploads")

    @app.get("/")
    def root():
        return {"status": "ok"}

    return app
