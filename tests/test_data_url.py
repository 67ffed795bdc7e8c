"""Tests for data URL encoding and parsing."""

from __future__ import annotations

import pytest

from crosscart.errors import InvalidDataUrl, ValidationFailure
from crosscart.imggen.data_url import InlineImage, decode_data_url, encode_data_url


def test_encode_then_decode_preserves_bytes_and_mime() -> None:
    url = encode_data_url(b"\x89PNG\r\n", "image/webp")

    assert url.startswith("data:image/webp;base64,")
    assert decode_data_url(url) == InlineImage(data=b"\x89PNG\r\n", mime_type="image/webp")


def test_inline_image_renders_data_url() -> None:
    image = InlineImage(data=b"abc", mime_type="image/jpeg")

    assert image.to_base64() == "YWJj"
    assert image.to_data_url() == "data:image/jpeg;base64,YWJj"


@pytest.mark.parametrize(
    "url",
    [
        "",
        "https://example.com/portrait.png",
        "data:image/png,YWJj",
        "data:;base64,YWJj",
        "data:image/png;base64,not base64!",
    ],
)
def test_decode_rejects_malformed_urls(url: str) -> None:
    with pytest.raises(InvalidDataUrl) as exc_info:
        decode_data_url(url)

    assert isinstance(exc_info.value, ValidationFailure)
