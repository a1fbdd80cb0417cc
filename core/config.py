import os
from pathlib import Path
from typing import List

from pydantic import BaseModel

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"
UPLOAD_DIR = DATA_DIR / "uploads"
INDEX_PATH = DATA_DIR / "movies.json"

CHUNK_SIZE = 1024 * 1024  # 1 MiB for streaming
MAX_UPLOAD_BYTES = 1024 * 1024 * 1024  # 1 GiB
MAX_THUMBNAIL_BYTES = 10 * 1024 * 1024

ENV_PREFIX = "MOVIE_VAULT_"


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    upload_dir: Path = UPLOAD_DIR
    index_path: Path = INDEX_PATH
    # empty -> derived from the incoming request
    public_base_url: str = ""
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    max_thumbnail_bytes: int = MAX_THUMBNAIL_BYTES
    require_thumbnail: bool = False
    chunk_size: int = CHUNK_SIZE
    video_extensions: List[str] = ["mp4", "mov", "avi", "mkv"]
    thumbnail_extensions: List[str] = ["jpg", "jpeg", "png", "webp"]
    log_level: str = "INFO"
    allowed_origins: List[str] = [
        "http://localhost",
        "http://127.0.0.1",
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from MOVIE_VAULT_* environment variables,
        falling back to the defaults above.
        """
        env = os.environ
        values = {}
        if f"{ENV_PREFIX}UPLOAD_DIR" in env:
            values["upload_dir"] = Path(env[f"{ENV_PREFIX}UPLOAD_DIR"])
        if f"{ENV_PREFIX}INDEX_PATH" in env:
            values["index_path"] = Path(env[f"{ENV_PREFIX}INDEX_PATH"])
        if f"{ENV_PREFIX}PUBLIC_BASE_URL" in env:
            values["public_base_url"] = env[f"{ENV_PREFIX}PUBLIC_BASE_URL"]
        if f"{ENV_PREFIX}MAX_UPLOAD_BYTES" in env:
            values["max_upload_bytes"] = int(env[f"{ENV_PREFIX}MAX_UPLOAD_BYTES"])
        if f"{ENV_PREFIX}MAX_THUMBNAIL_BYTES" in env:
            values["max_thumbnail_bytes"] = int(env[f"{ENV_PREFIX}MAX_THUMBNAIL_BYTES"])
        if f"{ENV_PREFIX}REQUIRE_THUMBNAIL" in env:
            values["require_thumbnail"] = _env_bool(env[f"{ENV_PREFIX}REQUIRE_THUMBNAIL"])
        if f"{ENV_PREFIX}LOG_LEVEL" in env:
            values["log_level"] = env[f"{ENV_PREFIX}LOG_LEVEL"]
        if f"{ENV_PREFIX}ALLOWED_ORIGINS" in env:
            values["allowed_origins"] = _env_list(env[f"{ENV_PREFIX}ALLOWED_ORIGINS"])
        return cls(**values)
