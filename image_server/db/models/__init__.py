# image_server/db/models/__init__.py
from . import image

__all__ = [
    "image",
]
