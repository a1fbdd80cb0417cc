from fastapi import Request

from services.delivery_service import DeliveryService
from services.movie_service import MovieService
from services.upload_service import UploadPipeline


def get_upload_pipeline(request: Request) -> UploadPipeline:
    return request.app.state.upload_pipeline


def get_movie_service(request: Request) -> MovieService:
    return request.app.state.movie_service


def get_delivery_service(request: Request) -> DeliveryService:
    return request.app.state.delivery_service


def get_base_url(request: Request) -> str:
    """Configured public URL, else the URL this request came in on."""
    configured = request.app.state.settings.public_base_url
    if configured:
        return configured.rstrip("/")
    return str(request.base_url).rstrip("/")
