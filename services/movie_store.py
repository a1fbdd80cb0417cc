import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.errors import PersistenceError
from schemas.movie import MovieRecord

logger = logging.getLogger(__name__)


class MovieStore:
    """
    Single-collection document store backed by a JSON index file.

    Each call takes the store lock for its whole read-modify-write, so
    callers may dispatch calls from worker threads.
    """

    def __init__(self, index_path: Path) -> None:
        self.index_path = Path(index_path)
        self._lock = threading.Lock()

    def ensure_index(self) -> None:
        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.index_path.exists():
            self.index_path.write_text("{}", encoding="utf-8")

    def _load(self) -> Dict[str, Any]:
        try:
            return json.loads(self.index_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read movie index: {e}")

    def _save(self, idx: Dict[str, Any]) -> None:
        tmp_path = self.index_path.with_suffix(".tmp")
        try:
            tmp_path.write_text(
                json.dumps(idx, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            tmp_path.replace(self.index_path)
        except OSError as e:
            raise PersistenceError(f"Failed to write movie index: {e}")

    def insert(
        self,
        title: str,
        video_filename: str,
        thumbnail_filename: Optional[str] = None,
        original_name: Optional[str] = None,
        size: Optional[int] = None,
        mime_type: Optional[str] = None,
    ) -> MovieRecord:
        with self._lock:
            idx = self._load()
            for doc in idx.values():
                if doc.get("videoFilename") == video_filename:
                    raise PersistenceError(f"Duplicate videoFilename: {video_filename}")

            record = MovieRecord(
                id=uuid.uuid4().hex,
                title=title,
                video_filename=video_filename,
                thumbnail_filename=thumbnail_filename,
                original_name=original_name,
                size=size,
                mime_type=mime_type,
                created_at=datetime.now(timezone.utc),
            )
            idx[record.id] = record.model_dump(mode="json", by_alias=True)
            self._save(idx)
        logger.debug("Inserted movie %s", record.id)
        return record

    def get(self, movie_id: str) -> Optional[MovieRecord]:
        with self._lock:
            doc = self._load().get(movie_id)
        if doc is None:
            return None
        return MovieRecord.model_validate(doc)

    def find_all(self) -> List[MovieRecord]:
        """Newest first; among equal timestamps the later insert wins."""
        with self._lock:
            docs = list(self._load().values())
        records = [MovieRecord.model_validate(d) for d in reversed(docs)]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    def delete(self, movie_id: str) -> bool:
        with self._lock:
            idx = self._load()
            if idx.pop(movie_id, None) is None:
                return False
            self._save(idx)
        return True
