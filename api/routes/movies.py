from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from api.deps import get_base_url, get_movie_service, get_upload_pipeline
from schemas.movie import DeleteResult, MovieOut
from services.movie_service import MovieService
from services.upload_service import UploadPipeline


router = APIRouter(prefix="/api/movies", tags=["movies"])


@router.post("/upload", status_code=201, response_model=MovieOut)
async def upload_movie(
    title: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
    base_url: str = Depends(get_base_url),
):
    try:
        record = await pipeline.create(title, file, thumbnail)
    finally:
        if file is not None:
            await file.close()
        if thumbnail is not None:
            await thumbnail.close()
    return MovieOut.from_record(record, base_url)


@router.get("", response_model=List[MovieOut])
async def list_movies(
    service: MovieService = Depends(get_movie_service),
    base_url: str = Depends(get_base_url),
):
    return await service.list_movies(base_url)


@router.get("/{movie_id}", response_model=MovieOut)
async def get_movie(
    movie_id: str,
    service: MovieService = Depends(get_movie_service),
    base_url: str = Depends(get_base_url),
):
    return await service.get_movie(movie_id, base_url)


@router.delete("/{movie_id}", response_model=DeleteResult)
async def delete_movie(movie_id: str, service: MovieService = Depends(get_movie_service)):
    await service.delete_movie(movie_id)
    return DeleteResult(message="Movie deleted successfully", id=movie_id)
