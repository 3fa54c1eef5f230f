from fastapi import Request
from pydantic import ValidationError
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from housing.core.config import Settings
from housing.core.errors import InvalidMetadata, InvalidMultipartForm
from housing.schemas.ad import PlaceMetadata


async def read_place_form(
    request: Request, settings: Settings
) -> tuple[PlaceMetadata, list[bytes]]:
    """Read the ``metadata`` JSON field and the ``images`` file parts."""
    length = request.headers.get("content-length", "")
    if length.isdigit() and int(length) > settings.max_upload_bytes:
        raise InvalidMultipartForm()

    try:
        async with request.form() as form:
            raw_metadata = form.get("metadata")
            images = []
            total = 0
            for part in form.getlist("images"):
                if not isinstance(part, UploadFile):
                    raise InvalidMultipartForm()
                data = await part.read()
                total += len(data)
                if total > settings.max_upload_bytes:
                    raise InvalidMultipartForm()
                images.append(data)
    except (MultiPartException, StarletteHTTPException):
        raise InvalidMultipartForm()

    if not isinstance(raw_metadata, str):
        raise InvalidMetadata()
    try:
        metadata = PlaceMetadata.model_validate_json(raw_metadata)
    except ValidationError:
        raise InvalidMetadata()
    return metadata, images
