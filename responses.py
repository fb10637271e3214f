from datetime import datetime
from urllib.parse import quote

from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

import models
from signing import SignedUrl


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def object_summary(obj: models.Object) -> dict:
    """Public view of an object. The storage path is deliberately absent."""
    return {
        "id": obj.id,
        "filename": obj.filename,
        "size": obj.size,
        "mime_type": obj.mime_type,
        "hash": obj.content_hash,
        "created_at": _timestamp(obj.created_at),
    }


def upload_response(obj: models.Object, signed: SignedUrl) -> dict:
    return {
        "status": "success",
        "object": object_summary(obj),
        "url": signed.url,
        "expires": signed.expires,
    }


def signed_url_response(signed: SignedUrl) -> dict:
    return {
        "status": "success",
        "url": signed.url,
        "token": signed.token,
        "expires": signed.expires,
    }


def bucket_summary(bucket: models.Bucket) -> dict:
    return {
        "id": bucket.id,
        "name": bucket.name,
        "public": bucket.is_public,
        "created_at": _timestamp(bucket.created_at),
    }


def project_summary(project: models.Project, bucket_count: int | None = None, include_key: bool = False) -> dict:
    content = {
        "id": project.id,
        "name": project.name,
        "created_at": _timestamp(project.created_at),
    }
    if bucket_count is not None:
        content["bucket_count"] = bucket_count
    if include_key:
        content["api_key"] = project.api_key
    return content


def _content_disposition(kind: str, filename: str) -> str:
    quoted = quote(filename)
    if quoted != filename:
        return f"{kind}; filename*=utf-8''{quoted}"
    return f'{kind}; filename="{filename}"'


def object_stream_response(obj: models.Object, chunks, disposition: str = "attachment") -> StreamingResponse:
    headers = {
        "Content-Length": str(obj.size),
        "Content-Disposition": _content_disposition(disposition, obj.filename),
        "Cache-Control": "no-store" if disposition == "attachment" else "private, must-revalidate",
        "X-Content-Type-Options": "nosniff",
        "ETag": f'"{obj.content_hash}"',
    }
    # Closes the file even when the body is never sent
    background = BackgroundTask(chunks.close) if hasattr(chunks, "close") else None
    return StreamingResponse(chunks, media_type=obj.mime_type, headers=headers, background=background)
