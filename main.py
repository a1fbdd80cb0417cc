import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes.movies import router as movies_router
from api.routes.uploads import router as uploads_router
from core.config import Settings
from core.logging_config import configure_logging
from services.blob_store import BlobStore
from services.delivery_service import DeliveryService
from services.movie_service import MovieService
from services.movie_store import MovieStore
from services.upload_service import UploadPipeline

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    blobs = BlobStore(settings.upload_dir, settings.chunk_size)
    store = MovieStore(settings.index_path)
    blobs.ensure_dir()
    store.ensure_index()

    app = FastAPI(title="Movie vault admin API", version=VERSION)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Range", "Content-Length", "Accept-Ranges"],
    )

    app.state.settings = settings
    app.state.upload_pipeline = UploadPipeline(settings, blobs, store)
    app.state.movie_service = MovieService(blobs, store)
    app.state.delivery_service = DeliveryService(blobs)

    @app.get("/")
    def home():
        return {"message": "Movie vault admin API", "version": VERSION}

    app.include_router(movies_router)
    app.include_router(uploads_router)

    logger.info("Serving uploads from %s", settings.upload_dir)
    return app


app = create_app()
