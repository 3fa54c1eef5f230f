import time
import uuid

from fastapi import Request

from housing.core.logger import access_logger, request_id_var

REQUEST_ID_HEADER = "X-Request-ID"


async def request_context(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    token = request_id_var.set(request_id)
    start = time.monotonic()
    request.state.request_id = request_id
    request.state.deadline = start + request.app.state.settings.request_timeout_seconds
    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        access_logger.info(
            "%s %s %s %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            time.monotonic() - start,
        )
        return response
    finally:
        request_id_var.reset(token)
