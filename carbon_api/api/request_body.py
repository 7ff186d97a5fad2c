"""Request Body Readers — size-capped JSON/form decoding and multipart extraction.

Invariants:
    - JSON and url-encoded bodies above settings.max_body_bytes → PayloadTooLargeError (413),
      raised while streaming: never more than limit + one chunk is buffered
    - Multipart bodies are parsed from a bounded stream (max_upload_bytes plus
      MULTIPART_OVERHEAD_BYTES); parsing stops at the first chunk past the budget
    - Missing body or unsupported content type decodes to {} (validators report the gap)
    - read_image_upload is the FIRST line of defense for uploads: at most one file,
      declared type must start with image/, payload capped at settings.max_upload_bytes
    - Uploaded bytes are held in memory only for the duration of the request

Design Decisions:
    - Manual decoding instead of a Pydantic body model: validation order and messages
      are part of the public contract (see core/validation.py)
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import parse_qs

from fastapi import Request
from starlette.datastructures import FormData, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser

from carbon_api.core.domain_types import UploadedImage
from carbon_api.core.errors import (
    MalformedBodyError, PayloadTooLargeError, UploadError,
)
from carbon_api.core.validation import format_megabytes

logger = logging.getLogger(__name__)

IMAGE_FIELD = "image"
# boundaries and part headers around the single file part
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def _media_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";")[0].strip().lower()


def _check_declared_length(request: Request, limit: int) -> None:
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(limit, int(declared))


def decode_form(raw: bytes) -> dict[str, Any]:
    """Url-encoded body → dict; repeated keys become lists."""
    parsed = parse_qs(raw.decode("utf-8", errors="replace"), keep_blank_values=True)
    return {
        key: values[0] if len(values) == 1 else values
        for key, values in parsed.items()
    }


def decode_json(raw: bytes) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        raise MalformedBodyError("Request body is not valid JSON") from exc
    return parsed if isinstance(parsed, dict) else {}


async def read_limited_body(request: Request, limit: int) -> bytes:
    """Read the request stream, stopping as soon as it passes `limit` bytes."""
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise PayloadTooLargeError(limit, received)
        chunks.append(chunk)
    return b"".join(chunks)


async def read_request_body(request: Request) -> dict[str, Any]:
    """Decode a JSON or url-encoded body into a mutable dict."""
    limit = request.app.state.settings.max_body_bytes
    _check_declared_length(request, limit)

    raw = await read_limited_body(request, limit)
    if not raw:
        return {}

    media_type = _media_type(request)
    if media_type == "application/json" or media_type.endswith("+json"):
        body = decode_json(raw)
    elif media_type == "application/x-www-form-urlencoded":
        body = decode_form(raw)
    else:
        logger.debug(f"Ignoring body with content type {media_type!r}")
        body = {}
    # error_handlers.describe_request reads it back after the stream is drained
    request.state.body = dict(body)
    return body


class _UploadStreamTooLarge(MultiPartException):
    """Multipart stream passed its byte budget mid-parse."""


def _upload_too_large(limit: int, size: int | None = None) -> UploadError:
    context = {"maxSize": f"{limit // (1024 * 1024)}MB"}
    if size is not None:
        context["actualSize"] = format_megabytes(size)
    return UploadError("File too large", field=IMAGE_FIELD, **context)


async def _bounded_stream(
    stream: AsyncIterator[bytes], budget: int,
) -> AsyncIterator[bytes]:
    received = 0
    async for chunk in stream:
        received += len(chunk)
        if received > budget:
            raise _UploadStreamTooLarge(f"Upload exceeds {budget} bytes")
        yield chunk


async def parse_multipart(request: Request, limit: int) -> FormData:
    """Parse at most one file, never reading more than limit + overhead bytes."""
    budget = limit + MULTIPART_OVERHEAD_BYTES
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > budget:
        raise _upload_too_large(limit, int(declared))

    parser = MultiPartParser(
        request.headers, _bounded_stream(request.stream(), budget), max_files=1,
    )
    try:
        return await parser.parse()
    except _UploadStreamTooLarge as exc:
        raise _upload_too_large(limit) from exc
    except MultiPartException as exc:
        raise UploadError(exc.message, field=IMAGE_FIELD) from exc


async def read_image_upload(request: Request) -> UploadedImage | None:
    """Extract the single `image` file part, or None when absent."""
    if _media_type(request) != "multipart/form-data":
        return None

    limit = request.app.state.settings.max_upload_bytes
    form = await parse_multipart(request, limit)
    try:
        upload = form.get(IMAGE_FIELD)
        if not isinstance(upload, UploadFile):
            return None
        if not upload.filename and not upload.size:
            return None

        content_type = upload.content_type or ""
        if not content_type.startswith("image/"):
            raise UploadError("Only image files are allowed", field=IMAGE_FIELD)

        content = await upload.read(limit + 1)
        size = upload.size if upload.size is not None else len(content)
        if len(content) > limit:
            raise _upload_too_large(limit, size)

        return UploadedImage(
            filename=upload.filename or "",
            content_type=content_type,
            size=size,
            content=content,
        )
    finally:
        await form.close()
