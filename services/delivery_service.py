import re
from typing import Optional, Tuple

from fastapi import Response
from fastapi.responses import StreamingResponse

from core.errors import RangeNotSatisfiableError
from services.blob_store import BlobStore, guess_mime

DIGITS_RE = re.compile(r"[0-9]+")


def parse_range(range_header: str, file_size: int) -> Tuple[int, int]:
    """
    Parse a header like: Range: bytes=start-end
    Return (start, end) inclusive. An end past the last byte is clamped;
    anything unsatisfiable raises RangeNotSatisfiableError.
    """
    try:
        units, _, rng = range_header.partition("=")
        if units.strip().lower() != "bytes" or not rng or "," in rng:
            raise ValueError
        start_str, _, end_str = rng.strip().partition("-")
        start_str, end_str = start_str.strip(), end_str.strip()

        if start_str == "" and end_str == "":
            raise ValueError
        # int() alone would take "+5" and "1_0"
        for part in (start_str, end_str):
            if part and not DIGITS_RE.fullmatch(part):
                raise ValueError

        if start_str == "":
            # suffix range: last N bytes
            length = int(end_str)
            if length <= 0:
                raise ValueError
            start = max(file_size - length, 0)
            end = file_size - 1
        else:
            start = int(start_str)
            end = int(end_str) if end_str else file_size - 1
            end = min(end, file_size - 1)

        if start < 0 or start >= file_size or end < start:
            raise ValueError

        return start, end
    except ValueError:
        raise RangeNotSatisfiableError(file_size)


class DeliveryService:
    """Serves stored blobs, honoring single byte-range requests."""

    def __init__(self, blobs: BlobStore) -> None:
        self.blobs = blobs

    def head(self, filename: str) -> Response:
        path = self.blobs.path_for(filename)
        content_type = guess_mime(str(path))
        headers = {
            "Accept-Ranges": "bytes",
            "Content-Length": str(path.stat().st_size),
            "Content-Type": content_type,
        }
        return Response(status_code=200, headers=headers)

    def serve(self, filename: str, range_header: Optional[str] = None) -> StreamingResponse:
        path = self.blobs.path_for(filename)
        file_size = path.stat().st_size
        content_type = guess_mime(str(path))

        if range_header is None:
            headers = {
                "Accept-Ranges": "bytes",
                "Content-Length": str(file_size),
            }
            return StreamingResponse(
                self.blobs.iter_range(path, 0, file_size - 1),
                headers=headers,
                media_type=content_type,
            )

        start, end = parse_range(range_header, file_size)
        content_length = end - start + 1
        headers = {
            "Content-Range": f"bytes {start}-{end}/{file_size}",
            "Accept-Ranges": "bytes",
            "Content-Length": str(content_length),
        }
        return StreamingResponse(
            self.blobs.iter_range(path, start, end),
            status_code=206,
            headers=headers,
            media_type=content_type,
        )
