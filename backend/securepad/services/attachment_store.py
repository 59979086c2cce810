"""File attachment store.

Metadata lives in the attachments table, payloads in file storage. Upload,
read and purge always handle both together. Expiry is enforced lazily on
access and by the periodic sweep; both go through purge_expired(), which is
idempotent, so whichever runs second finds nothing left to do.
"""
import logging
import secrets
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from securepad.errors import Expired, NotFound
from securepad.models.attachment import Attachment
from securepad.models.pad import Pad
from securepad.services.access import authorize
from securepad.services.file_validation import validate_upload

if TYPE_CHECKING:
    from securepad.context import AppContext

logger = logging.getLogger(__name__)


def new_attachment_id() -> str:
    return secrets.token_hex(16)


def clean_filename(filename: str | None) -> str:
    name = Path(filename or "").name.strip()
    return name[:255] or "unnamed"


async def upload_attachment(
    ctx: "AppContext",
    db: AsyncSession,
    pad_id: str,
    password: str,
    filename: str | None,
    declared_type: str | None,
    payload: bytes,
    on_denied: Callable[[Pad], None] | None = None,
) -> tuple[Pad, Attachment]:
    """Authorize, validate, store the payload, then record its metadata."""
    pad = await authorize(ctx, db, pad_id, password, on_denied=on_denied)
    name = clean_filename(filename)
    detected = validate_upload(payload, name, ctx.settings.MAX_UPLOAD_BYTES)

    attachment_id = new_attachment_id()
    storage_key = f"{pad.id}/{attachment_id}{detected.extension}"
    await ctx.storage.save(storage_key, payload)

    uploaded_at = ctx.now()
    attachment = Attachment(
        id=attachment_id,
        pad_id=pad.id,
        original_name=name,
        size_bytes=len(payload),
        declared_type=declared_type,
        media_type=detected.media_type,
        storage_key=storage_key,
        uploaded_at=uploaded_at,
        expires_at=uploaded_at + ctx.attachment_lifetime,
    )
    db.add(attachment)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        await ctx.storage.delete(storage_key)
        raise
    logger.info(f"Stored attachment {attachment_id} ({detected.media_type}, {len(payload)} bytes) for pad {pad.id}")
    return pad, attachment


async def _find(db: AsyncSession, pad_id: str, attachment_id: str) -> Attachment | None:
    result = await db.execute(
        select(Attachment).where(
            Attachment.pad_id == pad_id,
            Attachment.id == attachment_id,
        )
    )
    return result.scalar_one_or_none()


async def get_attachment(
    ctx: "AppContext",
    db: AsyncSession,
    pad_id: str,
    password: str,
    attachment_id: str,
    on_denied: Callable[[Pad], None] | None = None,
) -> tuple[Pad, Attachment]:
    """Return a live attachment whose payload is present in storage.

    An expired attachment is purged on the spot and reported as Expired.
    """
    pad = await authorize(ctx, db, pad_id, password, on_denied=on_denied)
    attachment = await _find(db, pad.id, attachment_id)
    if attachment is None:
        raise NotFound("File not found")

    if attachment.is_expired(ctx.now()):
        await purge_expired(ctx, db, pad.id)
        raise Expired()

    if not await ctx.storage.exists(attachment.storage_key):
        logger.error(f"Payload missing for attachment {attachment.id} of pad {pad.id}")
        raise NotFound("File not found")
    return pad, attachment


async def list_live(ctx: "AppContext", db: AsyncSession, pad_id: str) -> list[Attachment]:
    """Purge anything expired, then list what is left, oldest first.

    Expired rows kept back by a failed payload delete are filtered out too.
    """
    await purge_expired(ctx, db, pad_id)
    result = await db.execute(
        select(Attachment)
        .where(Attachment.pad_id == pad_id, Attachment.expires_at > ctx.now())
        .order_by(Attachment.uploaded_at)
    )
    return list(result.scalars().all())


async def delete_attachment(
    ctx: "AppContext",
    db: AsyncSession,
    pad_id: str,
    password: str,
    attachment_id: str,
    on_denied: Callable[[Pad], None] | None = None,
) -> tuple[Pad, Attachment]:
    """Owner-initiated removal of one attachment, payload first."""
    pad = await authorize(ctx, db, pad_id, password, on_denied=on_denied)
    attachment = await _find(db, pad.id, attachment_id)
    if attachment is None:
        raise NotFound("File not found")

    await ctx.storage.delete(attachment.storage_key)
    await db.execute(delete(Attachment).where(Attachment.id == attachment.id))
    await db.commit()
    logger.info(f"Deleted attachment {attachment.id} from pad {pad.id}")
    return pad, attachment


async def purge_expired(ctx: "AppContext", db: AsyncSession, pad_id: str) -> int:
    """Remove expired attachments of one pad. Returns how many were purged.

    Each payload is deleted independently. A payload that is already gone
    counts as deleted; any other storage failure is logged and its row is
    kept so the next purge retries it. Rows are only removed once their
    payload is gone, so no payload is orphaned.
    """
    now = ctx.now()
    result = await db.execute(select(Attachment).where(Attachment.pad_id == pad_id))
    expired = [a for a in result.scalars().all() if a.is_expired(now)]
    if not expired:
        return 0

    purged_ids = []
    for attachment in expired:
        try:
            await ctx.storage.delete(attachment.storage_key)
        except Exception as e:
            logger.error(f"Error deleting payload {attachment.storage_key} of pad {pad_id}: {e}")
            continue
        purged_ids.append(attachment.id)

    if purged_ids:
        await db.execute(
            delete(Attachment)
            .where(Attachment.id.in_(purged_ids))
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        logger.info(f"Purged {len(purged_ids)} expired attachment(s) from pad {pad_id}")
    return len(purged_ids)
