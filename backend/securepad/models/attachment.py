"""Attachment model - metadata for a time-limited file (bytes live in file storage)."""
from datetime import datetime
from sqlalchemy import String, BigInteger, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from securepad.models.base import Base, UTCDateTime


class Attachment(Base):
    __tablename__ = "attachments"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    pad_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("pads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    original_name: Mapped[str] = mapped_column(String(500), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    declared_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    media_type: Mapped[str] = mapped_column(String(100), nullable=False)
    storage_key: Mapped[str] = mapped_column(String(1000), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    pad: Mapped["Pad"] = relationship(back_populates="attachments")  # noqa: F821

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now
