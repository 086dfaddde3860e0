"""
JSON envelope encoder/decoder for the game wire protocol.

Every frame is a JSON object {"type": <tag>, "payload": {...}}. Models are
flat on the Python side; the envelope is applied and removed here.
"""

import json
from typing import Any

from pydantic import ValidationError

from client.messaging.types import ClientMessage, ServerMessage, parse_server_message

# Size limit to keep a misbehaving server from stalling the reader.
MAX_FRAME_LEN = 256 * 1024  # 256KB


class DecodeError(Exception):
    """Frame is malformed, unrecognized, or missing required payload fields.

    Non-fatal: callers log and discard the frame.
    """


def to_envelope(message: ClientMessage | ServerMessage) -> dict[str, Any]:
    """Return the wire-format dict for a message model."""
    return {
        "type": str(message.type),
        "payload": message.model_dump(mode="json", by_alias=True, exclude={"type"}, exclude_none=True),
    }


def encode(message: ClientMessage | ServerMessage) -> str:
    return json.dumps(to_envelope(message), separators=(",", ":"))


def decode(frame: str | bytes) -> ServerMessage:
    """
    Decode one inbound frame into a typed server message.

    Raises DecodeError if the frame is not a JSON object envelope, carries an
    unknown type, or its payload fails validation.
    """
    size = len(frame.encode()) if isinstance(frame, str) else len(frame)
    if size > MAX_FRAME_LEN:
        raise DecodeError(f"frame too large: {size} bytes (max {MAX_FRAME_LEN})")
    try:
        data = json.loads(frame)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"frame is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError(f"expected object, got {type(data).__name__}")

    message_type = data.get("type")
    payload = data.get("payload")
    if not isinstance(message_type, str):
        raise DecodeError("frame has no type tag")
    if not isinstance(payload, dict):
        raise DecodeError(f"{message_type} frame has no payload object")

    try:
        return parse_server_message({**payload, "type": message_type})
    except ValidationError as e:
        raise DecodeError(f"invalid {message_type} frame: {e.error_count()} validation error(s)") from e
