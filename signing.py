"""Signed URL tokens for private objects.

A token is the lowercase hex HMAC-SHA256 of ``bucket + file + expires`` keyed
with the owning project's API key. The three fields are concatenated with no
delimiter so URLs issued by earlier deployments keep verifying; this means
``("ab", "c")`` and ``("a", "bc")`` share a token for the same expiry.

Nothing is persisted: verification recomputes the digest and compares it in
constant time. The key itself never appears in a URL or a log line.
"""

import enum
import hashlib
import hmac
import time
from dataclasses import dataclass
from urllib.parse import urlencode

from sqlalchemy.orm import Session

import crud
from errors import NotFound
from logging_config import logger


class Verdict(str, enum.Enum):
    ALLOWED = "allowed"
    EXPIRED = "expired"
    INVALID_TOKEN = "invalid_token"


@dataclass(frozen=True)
class SignedUrl:
    url: str
    token: str
    expires: int


def _now() -> int:
    return int(time.time())


def compute_token(secret: str, bucket_name: str, filename: str, expires: int) -> str:
    message = f"{bucket_name}{filename}{expires}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def build_url(base_url: str, bucket_name: str, filename: str, token: str, expires: int) -> str:
    query = urlencode({"bucket": bucket_name, "file": filename, "token": token, "expires": expires})
    return f"{base_url.rstrip('/')}/api/get-file?{query}"


def generate_signed_url(
    db: Session,
    project_id: int,
    bucket_name: str,
    filename: str,
    ttl: int,
    base_url: str,
    now: int | None = None,
) -> SignedUrl:
    secret = crud.get_project_secret(db, project_id)
    if secret is None:
        raise NotFound()

    expires = (_now() if now is None else now) + ttl
    token = compute_token(secret, bucket_name, filename, expires)
    return SignedUrl(
        url=build_url(base_url, bucket_name, filename, token, expires),
        token=token,
        expires=expires,
    )


def parse_expires(raw) -> int | None:
    """Decimal Unix seconds in canonical form, or None.

    Only the exact digits a URL was minted with are accepted, so a value
    padded with leading zeros does not verify.
    """
    if isinstance(raw, int):
        return raw
    if not isinstance(raw, str) or not raw.isascii() or not raw.isdigit():
        return None
    if raw != str(int(raw)):
        return None
    return int(raw)


def verify_token(secret: str, bucket_name: str, filename: str, token: str, expires, now: int | None = None) -> Verdict:
    expires_at = parse_expires(expires)
    if expires_at is None:
        return Verdict.INVALID_TOKEN

    # Expiry is reported ahead of a bad signature
    if (_now() if now is None else now) > expires_at:
        return Verdict.EXPIRED

    expected = compute_token(secret, bucket_name, filename, expires_at)
    if not hmac.compare_digest(expected.encode("ascii"), (token or "").encode("utf-8")):
        return Verdict.INVALID_TOKEN
    return Verdict.ALLOWED


def verify(db: Session, bucket, filename: str, token: str, expires, now: int | None = None) -> Verdict:
    """Checks a token against the project that owns ``bucket``.

    The key is looked up from the bucket row, never from anything the
    client sent.
    """
    secret = crud.get_project_secret(db, bucket.project_id)
    if secret is None:
        logger.warning("Bucket %s has no owning project key", bucket.id)
        return Verdict.INVALID_TOKEN
    return verify_token(secret, bucket.name, filename, token, expires, now=now)
