"""
Local-disk media storage.

This file contains logic that is independent of FastAPI's routing layer:
- Validate uploads (extension allowlist, size limit, file count)
- Store bytes under a sanitized unique name, grouped by content type
- Map stored references (`/uploads/images/x.png`) back to files and delete them

Stored references are what documents keep; the app serves them from the
`/uploads` static mount.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from core.config import env_int, env_list, env_str
from core.errors import PayloadTooLargeError, StorageError, ValidationError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"
DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_ALLOWED_FILE_TYPES = ("jpg", "jpeg", "png", "gif", "webp", "pdf", "doc", "docx")
DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MiB
MAX_FILES_PER_REQUEST = 10

_UNSAFE_NAME_RE = re.compile(r"[^a-zA-Z0-9]")


@dataclass(frozen=True)
class StoredMedia:
    url: str
    filename: str
    content_type: str | None
    size_bytes: int


def upload_root() -> Path:
    return Path(env_str("UPLOAD_DIR", DEFAULT_UPLOAD_DIR))


def ensure_upload_root() -> Path:
    root = upload_root()
    root.mkdir(parents=True, exist_ok=True)
    return root


def allowed_file_types() -> set[str]:
    return {ext.lower().lstrip(".") for ext in env_list("ALLOWED_FILE_TYPES", DEFAULT_ALLOWED_FILE_TYPES)}


def max_file_size() -> int:
    value = env_int("MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE)
    return value if value > 0 else DEFAULT_MAX_FILE_SIZE


def file_group(content_type: str | None) -> str:
    content_type = (content_type or "").lower()
    if content_type.startswith("image/"):
        return "images"
    if content_type == "application/pdf":
        return "documents"
    return "others"


def stored_filename(original: str) -> str:
    """
    `My Photo.PNG` -> `My-Photo-1760870400123-482913377.png`
    """
    path = PurePosixPath(original or "file")
    stem = _UNSAFE_NAME_RE.sub("-", path.stem) or "file"
    unique = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"{stem}-{unique}{path.suffix.lower()}"


def validate_upload(file: UploadFile) -> str:
    """
    Return the normalized extension (without dot) if this upload is acceptable.

    Validated on the filename extension; `content_type` is often missing or
    wrong in practice and only decides the storage folder.
    """
    if not file.filename:
        raise ValidationError.for_field("file", "Missing filename.")

    ext = PurePosixPath(file.filename).suffix.lower().lstrip(".")
    allowed = allowed_file_types()
    if ext not in allowed:
        raise ValidationError.for_field(
            "file",
            f"File type .{ext} is not allowed. Allowed types: {', '.join(sorted(allowed))}",
        )
    return ext


def validate_upload_count(files: list[UploadFile]) -> None:
    if not files:
        raise ValidationError.for_field("files", "At least one file is required.")
    if len(files) > MAX_FILES_PER_REQUEST:
        raise ValidationError.for_field(
            "files",
            f"Too many files. Maximum {MAX_FILES_PER_REQUEST} files allowed per request.",
        )


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise PayloadTooLargeError(f"File too large. Maximum size allowed is {max_bytes} bytes.")

    return bytes(buf)


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def save_upload(file: UploadFile) -> StoredMedia:
    validate_upload(file)
    data = await read_upload_bytes(file, max_bytes=max_file_size())

    group = file_group(file.content_type)
    name = stored_filename(file.filename or "")
    path = upload_root() / group / name
    try:
        await run_in_threadpool(_write_file, path, data)
    except OSError as exc:
        raise StorageError(f"Could not store upload '{file.filename}'.") from exc

    logger.info("media_stored url=%s/%s/%s size=%s", URL_PREFIX, group, name, len(data))
    return StoredMedia(
        url=f"{URL_PREFIX}/{group}/{name}",
        filename=name,
        content_type=file.content_type,
        size_bytes=len(data),
    )


async def save_uploads(files: list[UploadFile]) -> list[StoredMedia]:
    """
    Store every file or none: a failure removes the ones already written.
    """
    validate_upload_count(files)
    for file in files:
        validate_upload(file)

    stored: list[StoredMedia] = []
    try:
        for file in files:
            stored.append(await save_upload(file))
    except Exception:
        await delete_many([item.url for item in stored])
        raise
    return stored


def resolve_reference(url: str) -> Path | None:
    """
    Map a stored reference to a path under the upload root.

    Returns None for external URLs and for anything escaping the root.
    """
    url = (url or "").strip()
    if not url.startswith(URL_PREFIX + "/"):
        return None

    root = upload_root().resolve()
    relative = url[len(URL_PREFIX) + 1 :]
    candidate = (root / relative).resolve()
    if candidate == root or root not in candidate.parents:
        return None
    return candidate


def _unlink(path: Path) -> bool:
    if not path.exists():
        return False
    path.unlink()
    return True


async def delete_stored(url: str) -> bool:
    """
    Delete the file behind a stored reference. False when there was nothing
    to delete (external URL, already gone); StorageError on I/O failure.
    """
    path = resolve_reference(url)
    if path is None:
        return False
    try:
        return await run_in_threadpool(_unlink, path)
    except OSError as exc:
        raise StorageError(f"Could not delete stored media '{url}'.") from exc


async def delete_many(urls: list[str]) -> int:
    """
    Best-effort cleanup: every reference is attempted, failures are logged.
    """
    deleted = 0
    for url in urls:
        try:
            if await delete_stored(url):
                deleted += 1
        except StorageError:
            logger.warning("media_delete_failed url=%s", url, exc_info=True)
    return deleted
