import os
import hashlib
import shutil
import uuid
from pathlib import Path

from errors import InvalidUpload
from logging_config import logger
from validation import storage_suffix


def bucket_dir(project_id: int, bucket_id: int) -> Path:
    return Path(str(project_id)) / str(bucket_id)


def new_storage_name(filename: str) -> str:
    """Server-side file name; the client's name only contributes its extension."""
    return uuid.uuid4().hex + storage_suffix(filename)


def resolve(root: Path, relative_path: str) -> Path:
    return Path(root) / relative_path


def write_stream(target: Path, stream, chunk_size: int, max_size: int) -> tuple[int, str]:
    """Copies ``stream`` to ``target`` chunk by chunk.

    Returns the byte count and the SHA-256 hex digest. On any failure the
    partial file is removed before the error propagates.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    digest = hashlib.sha256()
    size = 0
    # Exclusive create: never clobber another object's file
    f = open(target, "xb")
    try:
        with f:
            while True:
                chunk = stream.read(chunk_size)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_size:
                    raise InvalidUpload("File size exceeds the limit.")
                digest.update(chunk)
                f.write(chunk)
    except Exception:
        remove_file(target)
        raise
    return size, digest.hexdigest()


class FileStream:
    """Chunked reader over a stored file.

    The file is opened on construction so a missing file raises before a
    response starts. Iterating to the end closes it; ``close()`` covers a
    response that is never iterated.
    """

    def __init__(self, path: Path, chunk_size: int):
        self._file = open(path, "rb")
        self.chunk_size = chunk_size

    def __iter__(self):
        try:
            while True:
                data = self._file.read(self.chunk_size)
                if not data:
                    break
                yield data
        finally:
            self.close()

    @property
    def closed(self) -> bool:
        return self._file.closed

    def close(self):
        self._file.close()


def iter_file(path: Path, chunk_size: int) -> FileStream:
    return FileStream(path, chunk_size)


def remove_file(path: Path) -> bool:
    """Deletes a stored file. Returns False if it was already gone."""
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    return True


def remove_project_dir(root: Path, project_id: int):
    project_dir = Path(root) / str(project_id)
    if project_dir.exists():
        shutil.rmtree(project_dir)
        logger.info("Removed storage directory for project %s", project_id)


def is_writable(root: Path) -> bool:
    root = Path(root)
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    return os.access(root, os.W_OK)
