"""Pad model - a named note protected by a single shared password."""
from datetime import datetime
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from securepad.models.base import Base, UTCDateTime, utcnow


class Pad(Base):
    __tablename__ = "pads"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    alert_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    attachments: Mapped[list["Attachment"]] = relationship(  # noqa: F821
        back_populates="pad",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Attachment.uploaded_at",
    )
