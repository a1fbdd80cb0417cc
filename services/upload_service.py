import asyncio
import functools
import logging
import re
from typing import List, Optional

from fastapi import UploadFile

from core.config import Settings
from core.errors import FileTooLargeError, ValidationError
from schemas.movie import MovieRecord
from services.blob_store import BlobStore, file_extension
from services.movie_store import MovieStore

logger = logging.getLogger(__name__)

THUMBNAIL_MIME_RE = re.compile(r"^image/(jpeg|png|webp)$")


class UploadPipeline:
    """
    Validate a multipart submission, persist its blobs and write the
    metadata record. Blobs written by a call that fails later are removed
    before the error propagates.
    """

    def __init__(self, settings: Settings, blobs: BlobStore, store: MovieStore) -> None:
        self.settings = settings
        self.blobs = blobs
        self.store = store

    def validate_title(self, title: Optional[str]) -> str:
        title = (title or "").strip()
        if not title:
            raise ValidationError("title is required and must not be empty")
        return title

    def validate_video(self, file: Optional[UploadFile]) -> str:
        if file is None or not file.filename:
            raise ValidationError("file is required")

        allowed = self.settings.video_extensions
        ext = file_extension(file.filename)
        if ext not in allowed:
            raise ValidationError(
                f"file: extension '.{ext}' is not allowed; allowed extensions: {', '.join(allowed)}"
            )
        content_type = file.content_type or ""
        if not content_type.startswith("video/"):
            raise ValidationError(f"file: content type '{content_type}' is not a video type")

        if file.size is not None and file.size > self.settings.max_upload_bytes:
            raise FileTooLargeError(
                f"file exceeds the maximum upload size of {self.settings.max_upload_bytes} bytes"
            )
        return ext

    def validate_thumbnail(self, thumbnail: Optional[UploadFile]) -> Optional[str]:
        if thumbnail is None or not thumbnail.filename:
            if self.settings.require_thumbnail:
                raise ValidationError("thumbnail is required")
            return None

        allowed = self.settings.thumbnail_extensions
        ext = file_extension(thumbnail.filename)
        if ext not in allowed:
            raise ValidationError(
                f"thumbnail: extension '.{ext}' is not allowed; allowed extensions: {', '.join(allowed)}"
            )
        content_type = thumbnail.content_type or ""
        if not THUMBNAIL_MIME_RE.match(content_type):
            raise ValidationError(
                f"thumbnail: content type '{content_type}' must be image/jpeg, image/png or image/webp"
            )

        if thumbnail.size is not None and thumbnail.size > self.settings.max_thumbnail_bytes:
            raise FileTooLargeError(
                f"thumbnail exceeds the maximum size of {self.settings.max_thumbnail_bytes} bytes"
            )
        return ext

    async def create(
        self,
        title: Optional[str],
        file: Optional[UploadFile],
        thumbnail: Optional[UploadFile] = None,
    ) -> MovieRecord:
        try:
            title = self.validate_title(title)
            video_ext = self.validate_video(file)
            thumb_ext = self.validate_thumbnail(thumbnail)
        except (ValidationError, FileTooLargeError) as e:
            logger.warning("Rejected upload: %s", e.detail)
            raise

        written: List[str] = []
        committed = False
        try:
            video_name, size = await self.blobs.write(
                file, video_ext, self.settings.max_upload_bytes
            )
            written.append(video_name)

            thumb_name = None
            if thumb_ext is not None:
                thumb_name, _ = await self.blobs.write(
                    thumbnail, thumb_ext, self.settings.max_thumbnail_bytes, prefix="thumb-"
                )
                written.append(thumb_name)

            loop = asyncio.get_running_loop()
            insert = loop.run_in_executor(
                None,
                functools.partial(
                    self.store.insert,
                    title=title,
                    video_filename=video_name,
                    thumbnail_filename=thumb_name,
                    original_name=file.filename,
                    size=size,
                    mime_type=file.content_type,
                ),
            )
            try:
                record = await asyncio.shield(insert)
            except asyncio.CancelledError:
                logger.warning("Upload of %r cancelled while saving its record", file.filename)
                await self._discard_record(insert)
                raise
            committed = True
        except FileTooLargeError as e:
            logger.warning("Rejected upload of %r: %s", file.filename, e.detail)
            raise
        except Exception:
            logger.exception("Upload of %r failed, removing %d blob(s)", file.filename, len(written))
            raise
        finally:
            if not committed:
                self.blobs.remove_quietly(written)

        logger.info("Uploaded movie %s (%s, %d bytes)", record.id, video_name, size)
        return record

    async def _discard_record(self, insert: "asyncio.Future[MovieRecord]") -> None:
        """
        The insert thread cannot be interrupted; wait for it and delete
        whatever it saved so no record outlives its blobs.
        """
        try:
            record = await insert
        except Exception:
            return
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.store.delete, record.id)
        except Exception as e:
            logger.warning("Could not discard record %s of a cancelled upload: %s", record.id, e)
