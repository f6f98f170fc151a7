# image_server/db/models/image.py
from sqlalchemy import Column, String, DateTime, Integer, BigInteger
from sqlalchemy.sql import func
from image_server.db.base import Base


class Image(Base):
    """One uploaded file. Rows are written once and never updated."""

    __tablename__ = "images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    path = Column(String(1024), nullable=False)
    filename = Column(String(255), nullable=False)
    size = Column(BigInteger, nullable=False)
    mimetype = Column(String(50), nullable=False)
    extension = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<Image id={self.id} filename={self.filename!r} path={self.path!r}>"
