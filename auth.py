import hmac

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

import crud
import models
import signing
from config import Settings, get_settings
from database import get_db
from errors import NotFound, Unauthorized
from logging_config import logger
from signing import Verdict


def _bearer_key(auth_header: str | None) -> str | None:
    if not auth_header:
        return None
    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    key = parts[1].strip()
    return key or None


async def get_current_project(request: Request, db: Session = Depends(get_db)) -> models.Project:
    """Resolves the bearer API key to its project or rejects the request."""
    api_key = _bearer_key(request.headers.get("authorization"))
    if api_key is None:
        logger.info("Rejected %s %s: missing or malformed authorization header", request.method, request.url.path)
        raise Unauthorized()

    project = crud.get_project_by_api_key(db, api_key)
    if not project:
        logger.info("Rejected %s %s: unknown API key", request.method, request.url.path)
        raise Unauthorized()
    return project


def require_admin(
    x_admin_token: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
):
    # No configured token means the admin API is switched off
    if not settings.admin_token or not x_admin_token:
        raise Unauthorized()
    if not hmac.compare_digest(settings.admin_token.encode(), x_admin_token.encode()):
        logger.warning("Rejected admin request: bad admin token")
        raise Unauthorized()


def admit_read(
    db: Session,
    bucket_name: str,
    filename: str,
    project: models.Project | None = None,
    token: str | None = None,
    expires: str | None = None,
    now: int | None = None,
) -> models.Object:
    """Decides whether a read may proceed and returns the object to serve.

    With ``project`` set the caller presented a valid API key and the lookup
    is confined to that project; anything outside it is reported as missing.
    Without it the request came through a shared URL: public buckets are
    served as-is, private ones need a token minted with the owner's key.
    """
    if project is not None:
        obj = crud.find_object(db, project.id, bucket_name, filename)
        if not obj:
            raise NotFound()
        return obj

    candidates = crud.find_public_candidates(db, bucket_name, filename)
    if not candidates:
        raise NotFound()

    has_token = bool(token) and bool(expires)
    verdicts = []
    if has_token:
        for obj in candidates:
            if obj.bucket.is_public:
                continue
            verdict = signing.verify(db, obj.bucket, filename, token, expires, now=now)
            if verdict is Verdict.ALLOWED:
                return obj
            verdicts.append(verdict)

    for obj in candidates:
        if obj.bucket.is_public:
            return obj

    if not has_token:
        logger.info("Denied signed read of %s/%s: no token presented", bucket_name, filename)
    elif Verdict.EXPIRED in verdicts:
        logger.info("Denied signed read of %s/%s: URL expired", bucket_name, filename)
    else:
        logger.warning("Denied signed read of %s/%s: token mismatch", bucket_name, filename)
    raise Unauthorized()
