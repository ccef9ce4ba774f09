"""Validation of user file attachments before they reach a model call."""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union
from urllib.parse import unquote_to_bytes

from .config_loader import get_attachment_config

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:(?P<meta>[^,]*),(?P<payload>.*)$", re.DOTALL)


@dataclass(frozen=True)
class FileAttachment:
    url: str
    media_type: Optional[str] = None
    filename: Optional[str] = None


def parse_data_uri(url: str) -> Optional[Dict[str, Any]]:
    """Split a data URI into media type, base64 flag and payload. None if not a data URI."""
    match = _DATA_URI_RE.match(url or "")
    if not match:
        return None
    meta = match.group("meta").split(";")
    media_type = meta[0].strip().lower() or "text/plain"
    is_base64 = any(p.strip().lower() == "base64" for p in meta[1:])
    return {"media_type": media_type, "base64": is_base64, "payload": match.group("payload")}


def estimate_size(parsed: Dict[str, Any]) -> int:
    """Decoded size of a data URI payload, without decoding it."""
    payload = parsed["payload"]
    if parsed["base64"]:
        payload = payload.strip()
        padding = len(payload) - len(payload.rstrip("="))
        return max(0, len(payload) * 3 // 4 - padding)
    return len(payload)


def _drop(attachment: FileAttachment, reason: str) -> None:
    logger.warning("Dropping attachment %s: %s", attachment.filename or "<unnamed>", reason)


def filter_attachments(
    attachments: Iterable[FileAttachment],
    max_bytes: Optional[int] = None,
    allowed_media_types: Optional[Iterable[str]] = None,
) -> List[Dict[str, Any]]:
    """Keep only self-contained, allow-listed attachments under the size cap.

    Returns file parts: {"type": "file", "media_type", "data" (base64), "url", "filename"}.
    Invalid attachments are dropped without raising.
    """
    config = get_attachment_config()
    if max_bytes is None:
        max_bytes = int(config["max_bytes"])
    allowed = set(allowed_media_types if allowed_media_types is not None else config["allowed_media_types"])

    parts = []
    for attachment in attachments:
        parsed = parse_data_uri(attachment.url)
        if parsed is None:
            _drop(attachment, "not a data URI")
            continue
        media_type = (attachment.media_type or parsed["media_type"]).lower()
        if media_type not in allowed:
            _drop(attachment, f"media type {media_type} not allowed")
            continue
        size = estimate_size(parsed)
        if size > max_bytes:
            _drop(attachment, f"{size} bytes exceeds {max_bytes}")
            continue

        if parsed["base64"]:
            data = parsed["payload"].strip()
            try:
                base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError):
                _drop(attachment, "invalid base64 payload")
                continue
        else:
            data = base64.b64encode(unquote_to_bytes(parsed["payload"])).decode("ascii")

        parts.append({
            "type": "file",
            "media_type": media_type,
            "data": data,
            "url": f"data:{media_type};base64,{data}",
            "filename": attachment.filename,
        })
    return parts


def build_user_content(question: str, attachments: Iterable[FileAttachment]) -> Union[str, List[Dict[str, Any]]]:
    """User message content: the bare question, or text + file parts."""
    file_parts = filter_attachments(attachments)
    if not file_parts:
        return question
    return [{"type": "text", "text": question}] + file_parts
