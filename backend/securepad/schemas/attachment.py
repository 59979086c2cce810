"""Attachment response schemas."""
from datetime import datetime

from securepad.models.attachment import Attachment
from securepad.schemas.base import CamelModel, CamelORMModel


class AttachmentResponse(CamelORMModel):
    id: str
    name: str
    size: int
    media_type: str
    uploaded_at: datetime
    expires_at: datetime

    @classmethod
    def from_record(cls, attachment: Attachment) -> "AttachmentResponse":
        return cls(
            id=attachment.id,
            name=attachment.original_name,
            size=attachment.size_bytes,
            media_type=attachment.media_type,
            uploaded_at=attachment.uploaded_at,
            expires_at=attachment.expires_at,
        )


class UploadResponse(CamelModel):
    success: bool = True
    file: AttachmentResponse


class DeleteResponse(CamelModel):
    deleted: bool = True
    id: str = ""
