import re
from pathlib import Path, PurePath

from config import Settings
from errors import InvalidUpload

# Leading bytes per MIME type; None matches any byte at that position.
MAGIC_SIGNATURES = {
    "image/jpeg": [b"\xff\xd8\xff"],
    "image/png": [b"\x89PNG\r\n\x1a\n"],
    "image/gif": [b"GIF87a", b"GIF89a"],
    "image/webp": [(b"RIFF", None, None, None, None, b"WEBP")],
    "audio/wav": [(b"RIFF", None, None, None, None, b"WAVE")],
    "video/webm": [b"\x1a\x45\xdf\xa3"],
    "audio/mpeg": [b"ID3", b"\xff\xfb", b"\xff\xf3", b"\xff\xf2"],
    "application/pdf": [b"%PDF-"],
    "application/zip": [b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08"],
    "application/x-rar-compressed": [b"Rar!\x1a\x07"],
}

HEADER_SIZE = 16

_SAFE_SUFFIX = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


def extension_of(filename: str) -> str:
    return PurePath(filename).suffix.lower().lstrip(".")


def storage_suffix(filename: str) -> str:
    """Extension kept on the generated storage name, if it is harmless."""
    suffix = PurePath(filename).suffix.lower()
    return suffix if _SAFE_SUFFIX.match(suffix) else ""


def check_declared(settings: Settings, filename: str, mime_type: str) -> None:
    if not filename or filename in (".", "..") or "/" in filename or "\\" in filename or "\x00" in filename:
        raise InvalidUpload("Invalid file name.")
    if mime_type not in settings.allowed_mime_types:
        raise InvalidUpload("Invalid file type.")
    if extension_of(filename) in settings.dangerous_extensions:
        raise InvalidUpload("File extension is not allowed.")


def _matches(header: bytes, signature) -> bool:
    if isinstance(signature, bytes):
        return header.startswith(signature)
    pos = 0
    for part in signature:
        if part is None:
            pos += 1
            continue
        if header[pos:pos + len(part)] != part:
            return False
        pos += len(part)
    return True


def signature_matches(header: bytes, mime_type: str) -> bool:
    """True when the file header agrees with the declared MIME type.

    Types without a known signature always pass.
    """
    signatures = MAGIC_SIGNATURES.get(mime_type)
    if not signatures:
        return True
    return any(_matches(header, sig) for sig in signatures)


def check_signature(path: Path, mime_type: str) -> None:
    with open(path, "rb") as f:
        header = f.read(HEADER_SIZE)
    if not signature_matches(header, mime_type):
        raise InvalidUpload("File content does not match its declared type.")
