"""Pad record store: create, read and save pad content."""
import logging
import re
import secrets
from typing import TYPE_CHECKING, Callable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from securepad.errors import AlreadyExists, InvalidInput, NotFound
from securepad.models.pad import Pad
from securepad.services import access
from securepad.services.credentials import hash_secret_async

if TYPE_CHECKING:
    from securepad.context import AppContext

logger = logging.getLogger(__name__)

PAD_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,50}$")
INVALID_PAD_ID_MESSAGE = (
    "Invalid URL name. Use 3-50 characters (letters, numbers, hyphens, underscores only)"
)


def is_valid_pad_id(pad_id: str) -> bool:
    return bool(pad_id) and PAD_ID_PATTERN.fullmatch(pad_id) is not None


def generate_pad_id() -> str:
    """Random id drawn from the same alphabet users may choose from."""
    return secrets.token_urlsafe(8)


async def pad_exists(db: AsyncSession, pad_id: str) -> bool:
    result = await db.execute(select(Pad.id).where(Pad.id == pad_id))
    return result.scalar_one_or_none() is not None


async def create_pad(
    ctx: "AppContext",
    db: AsyncSession,
    pad_id: str,
    password: str,
    alert_email: str | None = None,
) -> Pad:
    """Create an empty pad. An existing pad with the same id is left untouched."""
    if not is_valid_pad_id(pad_id):
        raise InvalidInput(INVALID_PAD_ID_MESSAGE)
    min_length = ctx.settings.MIN_PASSWORD_LENGTH
    if not password or len(password) < min_length:
        raise InvalidInput(f"Password must be at least {min_length} characters")

    if await pad_exists(db, pad_id):
        raise AlreadyExists()

    now = ctx.now()
    pad = Pad(
        id=pad_id,
        content="",
        password_hash=await hash_secret_async(password, ctx.settings.BCRYPT_ROUNDS),
        alert_email=alert_email,
        created_at=now,
        updated_at=now,
    )
    db.add(pad)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent create of the same id
        await db.rollback()
        raise AlreadyExists()
    logger.info(f"Created pad {pad_id}")
    return pad


async def get_pad(db: AsyncSession, pad_id: str) -> Pad:
    pad = await db.get(Pad, pad_id)
    if pad is None:
        raise NotFound("Pad not found")
    return pad


async def update_content(
    ctx: "AppContext",
    db: AsyncSession,
    pad_id: str,
    password: str,
    content: str,
    on_denied: Callable[[Pad], None] | None = None,
) -> Pad:
    """Replace a pad's content after verifying its password.

    Whole-record write: concurrent saves are not coordinated and the last
    commit wins.
    """
    pad = await access.authorize(ctx, db, pad_id, password, on_denied=on_denied)
    pad.content = content
    pad.updated_at = ctx.now()
    await db.commit()
    return pad
