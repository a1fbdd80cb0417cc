import logging
import mimetypes
import secrets
import time
from pathlib import Path
from typing import AsyncIterator, Iterable, Optional, Tuple

import aiofiles
from fastapi import UploadFile

from core.errors import FileTooLargeError, NotFoundError, StorageError

logger = logging.getLogger(__name__)

# not every platform mime table knows these
mimetypes.add_type("video/mp4", ".mp4")
mimetypes.add_type("video/quicktime", ".mov")
mimetypes.add_type("video/x-msvideo", ".avi")
mimetypes.add_type("video/x-matroska", ".mkv")
mimetypes.add_type("image/webp", ".webp")


def guess_mime(path: str, fallback: str = "application/octet-stream") -> str:
    m, _ = mimetypes.guess_type(path)
    return m or fallback


def file_extension(filename: Optional[str]) -> str:
    """Lower-cased extension without the dot, or '' if there is none."""
    suffix = Path(filename or "").suffix
    return suffix[1:].lower()


class BlobStore:
    """
    Flat directory of uploaded binaries. Names are generated here and
    never taken from user input.
    """

    def __init__(self, directory: Path, chunk_size: int) -> None:
        self.directory = Path(directory)
        self.chunk_size = chunk_size

    def ensure_dir(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def generate_name(self, ext: str, prefix: str = "") -> str:
        """{prefix}{epoch_ms}-{random}.{ext}"""
        return f"{prefix}{int(time.time() * 1000)}-{secrets.randbelow(10**9)}.{ext}"

    def path_for(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise NotFoundError("File not found")
        path = self.directory / name
        if not path.is_file():
            raise NotFoundError("File not found")
        return path

    async def write(
        self, upload: UploadFile, ext: str, max_bytes: int, prefix: str = ""
    ) -> Tuple[str, int]:
        """
        Stream an upload to disk in chunks under a freshly generated name.
        Returns (name, bytes written). On any failure, cancellation included,
        the partial file is removed before the error propagates.
        """
        while True:
            name = self.generate_name(ext, prefix)
            try:
                out = await aiofiles.open(self.directory / name, "xb")
            except FileExistsError:
                # another upload claimed the name first
                logger.debug("Blob name %s taken, retrying", name)
                continue
            except OSError as e:
                raise StorageError(f"Failed to store file: {e}")
            break

        size = 0
        try:
            try:
                while chunk := await upload.read(self.chunk_size):
                    size += len(chunk)
                    if size > max_bytes:
                        raise FileTooLargeError(
                            f"File exceeds the maximum upload size of {max_bytes} bytes"
                        )
                    await out.write(chunk)
            finally:
                await out.close()
        except OSError as e:
            self.remove_quietly([name])
            raise StorageError(f"Failed to store file: {e}")
        except BaseException:
            self.remove_quietly([name])
            raise
        return name, size

    async def iter_range(self, path: Path, start: int, end: int) -> AsyncIterator[bytes]:
        read_bytes = 0
        to_read = end - start + 1
        async with aiofiles.open(path, "rb") as f:
            await f.seek(start)
            while read_bytes < to_read:
                chunk_size = min(self.chunk_size, to_read - read_bytes)
                data = await f.read(chunk_size)
                if not data:
                    break
                read_bytes += len(data)
                yield data

    def delete(self, name: str) -> None:
        try:
            (self.directory / name).unlink()
        except FileNotFoundError:
            raise NotFoundError(f"File {name} not found")
        except OSError as e:
            raise StorageError(f"Failed to delete file {name}: {e}")

    def remove_quietly(self, names: Iterable[str]) -> None:
        """Best-effort removal; failures are logged and swallowed."""
        for name in names:
            try:
                (self.directory / name).unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove blob %s: %s", name, e)
            else:
                logger.debug("Removed blob %s", name)
