from fastapi import Request, status
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class ImageServerException(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class Unauthorized(ImageServerException):
    status_code = status.HTTP_403_FORBIDDEN


class MethodNotAllowed(ImageServerException):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED


class InvalidUpload(ImageServerException):
    status_code = status.HTTP_400_BAD_REQUEST


class PayloadTooLarge(InvalidUpload):
    """Raised while reading a request body that grew past the upload cap."""


class BlobStoreError(ImageServerException):
    pass


class MetadataStoreError(ImageServerException):
    pass


def _error_response(request: Request, message: str, status_code: int, headers=None) -> PlainTextResponse:
    response = PlainTextResponse(message, status_code=status_code, headers=headers)
    # lazy import: auth.dependencies imports this module
    from image_server.auth.dependencies import apply_gate_headers, passed_gate

    if passed_gate(request):
        apply_gate_headers(response, content_type=False)
    return response


async def image_server_exception_handler(request: Request, exc: ImageServerException):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(request, exc.message, exc.status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(
        request,
        str(exc.detail),
        exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error")
    return _error_response(request, "Database error occurred", status.HTTP_500_INTERNAL_SERVER_ERROR)
