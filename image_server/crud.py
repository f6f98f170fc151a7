# image_server/crud.py
import logging
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from image_server.core.errors import MetadataStoreError
from image_server.db.models.image import Image

logger = logging.getLogger(__name__)


# -------------------------------
# Create an image record
# -------------------------------
async def insert_image(
    session: AsyncSession,
    path: str,
    filename: str,
    size: int,
    mimetype: str,
    extension: str,
    created_at: Optional[datetime] = None,
) -> Image:
    """
    Adds one Image row and flushes to make .id available.
    The caller owns the commit.
    """
    try:
        image = Image(
            path=path,
            filename=filename,
            size=size,
            mimetype=mimetype,
            extension=extension,
            created_at=created_at or datetime.now(timezone.utc),
        )
        session.add(image)
        await session.flush()
        return image
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Failed to store image record for %s", filename)
        raise MetadataStoreError("Database error occurred") from e


# -------------------------------
# List every image, newest first
# -------------------------------
async def list_images(session: AsyncSession) -> List[Image]:
    q = select(Image).order_by(Image.created_at.desc(), Image.id.desc())
    try:
        res = await session.execute(q)
        return list(res.scalars().all())
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Failed to list images")
        raise MetadataStoreError("Database error occurred") from e
