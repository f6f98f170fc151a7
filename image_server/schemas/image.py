from datetime import datetime
from typing import List
from pydantic import BaseModel, field_serializer


class ImageOut(BaseModel):
    # field order is the wire order
    id: int
    path: str
    filename: str
    size: int
    mimetype: str
    extension: str
    created_at: datetime

    class Config:
        from_attributes = True

    @field_serializer("created_at")
    def serialize_created_at(self, created_at: datetime):
        return created_at.isoformat()


def serialize_images(images) -> List[dict]:
    return [ImageOut.model_validate(img).model_dump() for img in images]
