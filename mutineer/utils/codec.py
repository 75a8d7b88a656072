"""Serialization and stream framing for worker results.

Each record travels as a 4-byte big-endian length header followed by a
UTF-8 JSON body. The header lets a reader skip a body it cannot decode
and carry on with the next record.
"""

import json
import struct
from typing import Any, BinaryIO, Optional

from pydantic import BaseModel, ValidationError

from ..core.errors import SerializationError, DeserializationError, TransportFailure
from ..core.types import CoverageResult

HEADER = struct.Struct(">I")
MAX_FRAME_SIZE = 64 * 1024 * 1024


def to_json_string(obj: Any) -> str:
    """Convert object to a JSON string."""
    if isinstance(obj, BaseModel):
        return obj.model_dump_json()
    try:
        return json.dumps(obj, sort_keys=True, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to encode object to JSON: {e}") from e


def from_json_string(json_str: str) -> Any:
    """Parse JSON string to object."""
    try:
        return json.loads(json_str)
    except json.JSONDecodeError as e:
        raise DeserializationError(f"Failed to decode JSON string: {e}") from e


def encode_frame(record: BaseModel) -> bytes:
    """Encode one record as a length-prefixed frame."""
    body = to_json_string(record).encode("utf-8")
    if len(body) > MAX_FRAME_SIZE:
        raise SerializationError(
            f"Frame of {len(body)} bytes exceeds limit of {MAX_FRAME_SIZE}"
        )
    return HEADER.pack(len(body)) + body


def _read_exactly(stream: BinaryIO, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_frame(stream: BinaryIO) -> Optional[bytes]:
    """Read the next frame body.

    Returns None on a clean end of stream (no bytes before the header).

    Raises:
        TransportFailure: If the stream ends inside a frame or announces
            an impossible frame size
    """
    try:
        header = _read_exactly(stream, HEADER.size)
        if not header:
            return None
        if len(header) < HEADER.size:
            raise TransportFailure("Stream ended inside a frame header")

        (size,) = HEADER.unpack(header)
        if size > MAX_FRAME_SIZE:
            raise TransportFailure(f"Frame size {size} exceeds limit of {MAX_FRAME_SIZE}")

        body = _read_exactly(stream, size)
    except OSError as e:
        raise TransportFailure(f"Stream became unreadable: {e}") from e

    if len(body) < size:
        raise TransportFailure(
            f"Stream ended inside a frame body ({len(body)} of {size} bytes)"
        )
    return body


def decode_result(body: bytes) -> CoverageResult:
    """Decode one frame body into a CoverageResult."""
    try:
        return CoverageResult.model_validate_json(body)
    except (ValidationError, ValueError) as e:
        raise DeserializationError(f"Failed to decode coverage result: {e}") from e
