import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

ALLOWED_MIME_TYPES = frozenset({
    # Images
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    "image/avif",
    # Video
    "video/mp4",
    "video/webm",
    "video/quicktime",
    "video/x-msvideo",
    # Audio
    "audio/mpeg",
    "audio/wav",
    "audio/ogg",
    "audio/mp4",
    "audio/aac",
    # Documents
    "application/pdf",
    "text/plain",
    "text/csv",
    # Archives
    "application/zip",
    "application/x-rar-compressed",
    # Data
    "application/json",
})

DANGEROUS_EXTENSIONS = frozenset({
    "php", "php3", "php4", "php5", "phtml",
    "exe", "bat", "cmd", "com", "scr",
    "js", "vbs", "ps1", "sh", "py",
    "pl", "rb", "asp", "aspx", "jsp",
})

ONE_YEAR = 365 * 24 * 60 * 60


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./objectstore.db"
    storage_root: Path = Path("storage")
    max_file_size: int = 50 * 1024 * 1024
    upload_url_ttl: int = ONE_YEAR
    max_signed_url_ttl: int = ONE_YEAR
    stream_chunk_size: int = 64 * 1024
    admin_token: str | None = None
    default_project_name: str | None = None
    default_project_key: str | None = None
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 9000
    allowed_mime_types: frozenset[str] = field(default=ALLOWED_MIME_TYPES)
    dangerous_extensions: frozenset[str] = field(default=DANGEROUS_EXTENSIONS)


def load_settings() -> Settings:
    """Builds the settings from the environment (and the .env file, if any)."""
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./objectstore.db"),
        storage_root=Path(os.getenv("STORAGE_ROOT", "storage")),
        max_file_size=int(os.getenv("MAX_FILE_SIZE", 50 * 1024 * 1024)),
        upload_url_ttl=int(os.getenv("UPLOAD_URL_TTL", ONE_YEAR)),
        max_signed_url_ttl=int(os.getenv("MAX_SIGNED_URL_TTL", ONE_YEAR)),
        stream_chunk_size=int(os.getenv("STREAM_CHUNK_SIZE", 64 * 1024)),
        admin_token=os.getenv("ADMIN_TOKEN") or None,
        default_project_name=os.getenv("DEFAULT_PROJECT_NAME") or None,
        default_project_key=os.getenv("DEFAULT_PROJECT_KEY") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", 9000)),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
