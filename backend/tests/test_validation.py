import io
import os
import struct
import zlib

import pytest
from PIL import Image

from conftest import make_image
from housing.core.errors import (
    CharacterLimitExceeded,
    InvalidCharacters,
    InvalidImage,
    UrlCharacterLimitExceeded,
    UrlInvalidCharacters,
)
from housing.core.validation import (
    TEXT_RE,
    clean_text,
    clean_url_param,
    inspect_image,
    sanitize,
    validate_email,
    validate_login,
    validate_name,
    validate_password,
)

MAX_BYTES = 5 << 20


def truncated_jpeg() -> bytes:
    buf = io.BytesIO()
    Image.frombytes("RGB", (256, 256), os.urandom(256 * 256 * 3)).save(
        buf, format="JPEG", quality=95
    )
    data = buf.getvalue()
    return data[: len(data) // 3]


def png_chunk(tag: bytes, payload: bytes) -> bytes:
    body = tag + payload
    return struct.pack(">I", len(payload)) + body + struct.pack(">I", zlib.crc32(body))


def huge_png_header() -> bytes:
    ihdr = struct.pack(">IIBBBBB", 30000, 30000, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + png_chunk(b"IHDR", ihdr)
        + png_chunk(b"IDAT", zlib.compress(b""))
        + png_chunk(b"IEND", b"")
    )


@pytest.mark.parametrize(
    "raw",
    [
        "<b>Nice flat</b>",
        "<script>alert</script> downtown",
        "plain text",
        "<div><p>Квартира у моря</p></div>",
        "<a href='x'>link</a>-and_more",
    ],
)
def test_clean_text_output_has_no_tags(raw):
    cleaned = clean_text(raw)
    assert "<" not in cleaned and ">" not in cleaned
    assert TEXT_RE.fullmatch(cleaned)


def test_sanitize_strips_markup():
    assert sanitize("<i>hello</i> world") == "hello world"


def test_clean_text_rejects_punctuation():
    with pytest.raises(InvalidCharacters):
        clean_text("<b>hi</b>; drop table")


def test_clean_text_rejects_long_input():
    with pytest.raises(CharacterLimitExceeded):
        clean_text("a" * 256)


def test_clean_text_accepts_cyrillic():
    assert clean_text("Москва") == "Москва"


def test_clean_url_param_errors():
    with pytest.raises(UrlInvalidCharacters):
        clean_url_param("Moscow?x=1")
    with pytest.raises(UrlCharacterLimitExceeded):
        clean_url_param("m" * 300)


@pytest.mark.parametrize(
    "username,ok",
    [("newuser", True), ("a.b-c_d1", True), ("abc", False), (".user", False), ("user!", False)],
)
def test_validate_login(username, ok):
    assert validate_login(username) is ok


def test_field_validators():
    assert validate_email("user@example.com")
    assert not validate_email("user.example.com")
    assert validate_password("password")
    assert not validate_password("short")
    assert not validate_password("has space 123")
    assert validate_name("aboba123")
    assert not validate_name("abc")


def test_inspect_image_accepts_jpeg_and_png():
    jpeg = inspect_image(make_image(), MAX_BYTES, 2000, 2000)
    png = inspect_image(make_image(fmt="PNG"), MAX_BYTES, 2000, 2000)
    assert jpeg.extension == "jpg"
    assert png.extension == "png"
    assert jpeg.width == 16 and jpeg.height == 16
    assert len(jpeg.digest) == 16


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"definitely not an image",
        make_image(fmt="GIF"),
        make_image(size=(2001, 10)),
        truncated_jpeg(),
        huge_png_header(),
    ],
    ids=["empty", "garbage", "gif", "too-wide", "truncated-jpeg", "huge-png"],
)
def test_inspect_image_rejects(data):
    with pytest.raises(InvalidImage):
        inspect_image(data, MAX_BYTES, 2000, 2000)


def test_inspect_image_rejects_large_payload():
    with pytest.raises(InvalidImage):
        inspect_image(make_image(), 10, 2000, 2000)
