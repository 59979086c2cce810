"""Access gateway: every pad- and file-scoped operation passes through authorize()."""
import logging
from typing import TYPE_CHECKING, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from securepad.errors import NotFound, Unauthorized
from securepad.models.pad import Pad
from securepad.services import pad_store
from securepad.services.credentials import verify_secret_async

if TYPE_CHECKING:
    from securepad.context import AppContext

logger = logging.getLogger(__name__)

GENERIC_LOGIN_ERROR = "Incorrect pad name or password."


async def authorize(
    ctx: "AppContext",
    db: AsyncSession,
    pad_id: str,
    password: str,
    *,
    conceal_missing: bool = False,
    on_denied: Callable[[Pad], None] | None = None,
) -> Pad:
    """Load a pad and verify its password.

    With conceal_missing (login-style entry points) an unknown pad and a
    wrong password raise the same Unauthorized, and both cost one bcrypt
    check at the configured rounds. Otherwise an unknown pad is NotFound.
    on_denied is called with the pad after a wrong password.
    """
    try:
        pad = await pad_store.get_pad(db, pad_id)
    except NotFound:
        if not conceal_missing:
            raise
        await verify_secret_async(password or "", ctx.missing_pad_hash)
        raise Unauthorized(GENERIC_LOGIN_ERROR)

    if not await verify_secret_async(password or "", pad.password_hash):
        logger.info(f"Rejected password for pad {pad_id}")
        if on_denied is not None:
            on_denied(pad)
        raise Unauthorized(GENERIC_LOGIN_ERROR if conceal_missing else "Incorrect password")
    return pad
