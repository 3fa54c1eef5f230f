import hashlib
import io
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup
from PIL import Image, UnidentifiedImageError

from housing.core.errors import (
    CharacterLimitExceeded,
    InvalidCharacters,
    InvalidImage,
    UrlCharacterLimitExceeded,
    UrlInvalidCharacters,
)

MAX_TEXT_LENGTH = 255

TEXT_RE = re.compile(r"^[A-Za-z0-9\s\-_\u0400-\u04FF]*$")
LOGIN_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9\-_.]{3,16}[A-Za-z0-9]$")
EMAIL_RE = re.compile(r"^.+@.+$")
PASSWORD_RE = re.compile(r"^[a-zA-Z0-9!@#$%^&*()_+=\-]{8,16}$")
NAME_RE = re.compile(r"^[A-Za-z\u0400-\u04FF0-9\s.\-_]{5,50}$")
SEX_RE = re.compile(r"^[MF]$")
REVIEW_TEXT_RE = re.compile(r"^[a-zA-Z\u0400-\u04FF0-9@.,\s\-!?:;_/()]*$")

IMAGE_FORMATS = {"JPEG": "jpg", "PNG": "png"}


def sanitize(value: str) -> str:
    return BeautifulSoup(value, "html.parser").get_text().strip()


def validate_text(value: str) -> None:
    if len(value) > MAX_TEXT_LENGTH:
        raise CharacterLimitExceeded()
    if not TEXT_RE.fullmatch(value):
        raise InvalidCharacters()


def clean_text(value: str) -> str:
    """Strip markup from user text and check it against the allow-list."""
    cleaned = sanitize(value)
    validate_text(cleaned)
    return cleaned


def clean_url_param(value: str) -> str:
    cleaned = sanitize(value)
    if len(cleaned) > MAX_TEXT_LENGTH:
        raise UrlCharacterLimitExceeded()
    if not TEXT_RE.fullmatch(cleaned):
        raise UrlInvalidCharacters()
    return cleaned


def validate_login(value: str) -> bool:
    return bool(LOGIN_RE.fullmatch(value))


def validate_email(value: str) -> bool:
    return bool(EMAIL_RE.fullmatch(value))


def validate_password(value: str) -> bool:
    return bool(PASSWORD_RE.fullmatch(value))


def validate_name(value: str) -> bool:
    return bool(NAME_RE.fullmatch(value))


def validate_sex(value: str) -> bool:
    return bool(SEX_RE.fullmatch(value))


def validate_review_text(value: str) -> bool:
    return bool(REVIEW_TEXT_RE.fullmatch(value))


@dataclass
class ImageInfo:
    extension: str
    width: int
    height: int
    digest: str


def inspect_image(
    data: bytes, max_bytes: int, max_width: int, max_height: int
) -> ImageInfo:
    """Fully decode an upload and check its format and resolution.

    Dimensions are checked from the header before the pixel data is decoded,
    so oversized images are rejected without allocating them.
    """
    if not data or len(data) > max_bytes:
        raise InvalidImage()
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            width, height = img.size
            if fmt not in IMAGE_FORMATS:
                raise InvalidImage()
            if width > max_width or height > max_height:
                raise InvalidImage()
            img.load()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ):
        raise InvalidImage()
    return ImageInfo(
        extension=IMAGE_FORMATS[fmt],
        width=width,
        height=height,
        digest=hashlib.sha256(data).hexdigest()[:16],
    )
