from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class MovieRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    video_filename: str
    thumbnail_filename: Optional[str] = None
    original_name: Optional[str] = None
    size: Optional[int] = None
    mime_type: Optional[str] = None
    created_at: datetime


class MovieOut(MovieRecord):
    url: str
    thumbnail_url: Optional[str] = None

    @classmethod
    def from_record(cls, record: MovieRecord, base_url: str) -> "MovieOut":
        base = base_url.rstrip("/")
        thumb_url = None
        if record.thumbnail_filename:
            thumb_url = f"{base}/uploads/{record.thumbnail_filename}"
        return cls(
            **record.model_dump(),
            url=f"{base}/uploads/{record.video_filename}",
            thumbnail_url=thumb_url,
        )


class DeleteResult(BaseModel):
    message: str
    id: str
