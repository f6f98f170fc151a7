# image_server/routers/files.py
import logging
from typing import Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException

from image_server import crud
from image_server.auth.dependencies import apply_gate_headers, require_token
from image_server.core.config import settings
from image_server.core.errors import (
    BlobStoreError,
    InvalidUpload,
    MetadataStoreError,
    MethodNotAllowed,
    PayloadTooLarge,
)
from image_server.db.session import get_async_session
from image_server.schemas.image import serialize_images
from image_server.storage import BlobStore, derive_extension, get_blob_store

router = APIRouter(tags=["Files"])
logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE = 8 * 1024 * 1024  # 8MB
ALLOWED_MIMETYPES = {"image/jpeg", "image/png"}
UPLOAD_FIELD = "imageFile"
CHUNK_SIZE = 64 * 1024

TOO_BIG_MESSAGE = "The uploaded file is too big (max: 8M)"
NO_FILE_MESSAGE = "http: no such file"
BAD_FORMAT_MESSAGE = "The provided file format is not allowed. Please upload a JPEG or PNG image"


def limit_body(request: Request, limit: int = MAX_UPLOAD_SIZE) -> Request:
    """
    Return a view of ``request`` whose body stream fails with PayloadTooLarge
    as soon as more than ``limit`` bytes have arrived. Content-Length is not
    trusted.
    """
    received = 0
    receive = request.receive

    async def capped_receive():
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit:
                raise PayloadTooLarge(TOO_BIG_MESSAGE)
        return message

    return Request(request.scope, receive=capped_receive)


async def copy_upload(upload, store: BlobStore, handle, path: str, strict: bool = False) -> int:
    """Copy the uploaded part into an open blob. Returns the number of bytes written."""
    copied = 0
    while True:
        try:
            chunk = await upload.read(CHUNK_SIZE)
        except OSError as e:
            if strict:
                raise BlobStoreError(f"Could not read uploaded file: {e}") from e
            # Record is still written; the blob may be partial.
            logger.warning(
                "Reading upload %r failed after %d bytes, keeping partial blob %s: %s",
                upload.filename, copied, path, e,
            )
            return copied
        if not chunk:
            return copied
        store.write(handle, chunk)
        copied += len(chunk)


async def save_upload(upload, store: BlobStore, extension: str, strict: bool = False) -> Tuple[str, int]:
    handle, path = store.create(extension)
    try:
        try:
            copied = await copy_upload(upload, store, handle, path, strict=strict)
        finally:
            store.close(handle)
    except BlobStoreError:
        store.remove(path)
        raise
    return path, copied


# -------------------------
# GET /file
# -------------------------
@router.get("/file", dependencies=[Depends(require_token)])
async def list_files(session: AsyncSession = Depends(get_async_session)):
    """All uploaded images, newest first."""
    images = await crud.list_images(session)
    return apply_gate_headers(JSONResponse(content=serialize_images(images)))


# -------------------------
# POST /file
# -------------------------
@router.post("/file", dependencies=[Depends(require_token)])
async def upload_file(
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    store: BlobStore = Depends(get_blob_store),
):
    """
    Store one JPEG/PNG from the ``imageFile`` form field, record it and
    redirect back to the referring page.
    """
    try:
        form = await limit_body(request).form()
    except MultiPartException as e:
        raise InvalidUpload(e.message) from e

    try:
        upload = form.get(UPLOAD_FIELD)
        if not isinstance(upload, UploadFile):
            raise InvalidUpload(NO_FILE_MESSAGE)

        mimetype = upload.content_type
        if mimetype not in ALLOWED_MIMETYPES:
            logger.info("Rejected upload %r with content type %r", upload.filename, mimetype)
            raise InvalidUpload(BAD_FORMAT_MESSAGE)

        filename = upload.filename or ""
        extension = derive_extension(filename)

        path, copied = await save_upload(
            upload, store, extension, strict=settings.STRICT_UPLOAD_READS
        )
        size = upload.size if upload.size is not None else copied

        try:
            image = await crud.insert_image(
                session,
                path=path,
                filename=filename,
                size=size,
                mimetype=mimetype,
                extension=extension,
            )
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Blob %s is orphaned: image record was not stored", path)
            raise MetadataStoreError("Database error occurred") from e
        except MetadataStoreError:
            logger.error("Blob %s is orphaned: image record was not stored", path)
            raise
    finally:
        await form.close()

    logger.info("Stored image %s (%r, %d bytes) at %s", image.id, filename, size, path)

    target = request.headers.get("referer")
    if not target:
        logger.info("Upload %s has no Referer, redirecting to /", image.id)
        target = "/"
    return apply_gate_headers(RedirectResponse(target, status_code=302), content_type=False)


@router.api_route(
    "/file",
    methods=["HEAD", "OPTIONS", "PUT", "PATCH", "DELETE"],
    dependencies=[Depends(require_token)],
    include_in_schema=False,
)
async def file_method_not_allowed():
    raise MethodNotAllowed("Method not allowed")
