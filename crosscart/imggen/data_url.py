"""Data URL helpers for passing portraits between the pipeline and callers."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

from crosscart.errors import InvalidDataUrl

_DATA_URL_PATTERN = re.compile(r"^data:([^;,]+);base64,(.*)$", re.DOTALL)


@dataclass(frozen=True, slots=True)
class InlineImage:
    """Raw image bytes with their mime type."""

    data: bytes
    mime_type: str = "image/png"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return encode_data_url(self.data, self.mime_type)


def encode_data_url(data: bytes, mime_type: str) -> str:
    """Return ``data:<mime>;base64,<payload>`` for the given bytes."""

    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_url(url: str) -> InlineImage:
    """Parse a base64 data URL; anything else raises ``InvalidDataUrl``."""

    match = _DATA_URL_PATTERN.match(url or "")
    if not match:
        raise InvalidDataUrl("Invalid portrait data URL.")
    mime_type, payload = match.groups()
    try:
        data = base64.b64decode(payload, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise InvalidDataUrl("Data URL payload is not valid base64.") from exc
    return InlineImage(data=data, mime_type=mime_type)
