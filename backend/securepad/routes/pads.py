"""Pads API routes: availability, create, login/verify, get and save content."""
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from securepad.context import AppContext, get_context
from securepad.database import get_db
from securepad.errors import InvalidInput
from securepad.schemas.attachment import AttachmentResponse
from securepad.schemas.pad import (
    AvailabilityResponse,
    CreatePadRequest,
    ExistsResponse,
    LoginRequest,
    PadContentResponse,
    PadCreate,
    PasswordRequest,
    SaveRequest,
    SaveResponse,
    SuccessResponse,
)
from securepad.services import attachment_store, pad_store
from securepad.services.access import authorize
from securepad.services.alerts import remember_denied, schedule_alert

router = APIRouter(prefix="/api", tags=["pads"])


@router.get("/check-url/{url_name}", response_model=AvailabilityResponse, response_model_exclude_none=True)
async def check_url(
    url_name: str,
    db: AsyncSession = Depends(get_db),
):
    """Check whether a custom pad name is valid and still free."""
    if not pad_store.is_valid_pad_id(url_name):
        return {"available": False, "error": pad_store.INVALID_PAD_ID_MESSAGE}
    return {"available": not await pad_store.pad_exists(db, url_name)}


@router.get("/pad/{pad_id}/exists", response_model=ExistsResponse)
async def pad_exists(
    pad_id: str,
    db: AsyncSession = Depends(get_db),
):
    return {"exists": await pad_store.pad_exists(db, pad_id)}


@router.post("/pad/{pad_id}/create", response_model=SuccessResponse, status_code=201)
async def create_pad(
    pad_id: str,
    body: PadCreate,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Create a pad under the id in the URL."""
    pad = await pad_store.create_pad(ctx, db, pad_id, body.password, body.alert_email)
    return {"success": True, "pad_id": pad.id}


@router.post("/create-pad", response_model=SuccessResponse, status_code=201)
async def create_pad_with_name(
    body: CreatePadRequest,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Create a pad under a chosen name, or a generated one when none is given."""
    pad_id = body.url_name or pad_store.generate_pad_id()
    pad = await pad_store.create_pad(ctx, db, pad_id, body.password, body.alert_email)
    return {"success": True, "pad_id": pad.id}


@router.post("/pad/{pad_id}/verify", response_model=SuccessResponse, response_model_exclude_none=True)
async def verify_pad(
    pad_id: str,
    body: PasswordRequest,
    request: Request,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Check a password. Unknown pads and wrong passwords look the same."""
    await authorize(ctx, db, pad_id, body.password, conceal_missing=True, on_denied=remember_denied(request))
    return {"success": True}


@router.post("/login", response_model=SuccessResponse)
async def login(
    body: LoginRequest,
    request: Request,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Log in to a pad by name and password."""
    if not body.url_name or not body.password:
        raise InvalidInput("URL name and password are required")
    pad = await authorize(
        ctx, db, body.url_name, body.password, conceal_missing=True, on_denied=remember_denied(request),
    )
    return {"success": True, "pad_id": pad.id}


@router.post("/pad/{pad_id}/get", response_model=PadContentResponse)
async def get_pad_content(
    pad_id: str,
    body: PasswordRequest,
    request: Request,
    background: BackgroundTasks,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Return pad content and its live attachments."""
    pad = await authorize(ctx, db, pad_id, body.password, on_denied=remember_denied(request))
    files = await attachment_store.list_live(ctx, db, pad.id)
    schedule_alert(background, ctx.alerts, request, pad, "note_accessed")
    return {
        "content": pad.content,
        "files": [AttachmentResponse.from_record(f) for f in files],
        "created_at": pad.created_at,
        "updated_at": pad.updated_at,
    }


@router.post("/pad/{pad_id}/save", response_model=SaveResponse)
async def save_pad_content(
    pad_id: str,
    body: SaveRequest,
    request: Request,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Auto-save target: replace the pad's content."""
    pad = await pad_store.update_content(
        ctx, db, pad_id, body.password, body.content, on_denied=remember_denied(request),
    )
    return {"success": True, "updated_at": pad.updated_at}
