import asyncio
import functools
import logging
from typing import List

from core.errors import MovieVaultError, NotFoundError
from schemas.movie import MovieOut
from services.blob_store import BlobStore
from services.movie_store import MovieStore

logger = logging.getLogger(__name__)


class MovieService:
    def __init__(self, blobs: BlobStore, store: MovieStore) -> None:
        self.blobs = blobs
        self.store = store

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))

    async def list_movies(self, base_url: str) -> List[MovieOut]:
        records = await self._run(self.store.find_all)
        return [MovieOut.from_record(r, base_url) for r in records]

    async def get_movie(self, movie_id: str, base_url: str) -> MovieOut:
        record = await self._run(self.store.get, movie_id)
        if record is None:
            raise NotFoundError("Movie not found")
        return MovieOut.from_record(record, base_url)

    async def delete_movie(self, movie_id: str) -> None:
        """
        Remove the blobs, then the record. Blob failures leave dangling
        files behind but never fail the delete.
        """
        record = await self._run(self.store.get, movie_id)
        if record is None:
            raise NotFoundError("Movie not found")

        for name in (record.video_filename, record.thumbnail_filename):
            if not name:
                continue
            try:
                self.blobs.delete(name)
            except MovieVaultError as e:
                logger.warning("Blob cleanup for movie %s: %s", movie_id, e.detail)

        if not await self._run(self.store.delete, movie_id):
            # deleted concurrently between lookup and delete
            raise NotFoundError("Movie not found")
        logger.info("Deleted movie %s", movie_id)
