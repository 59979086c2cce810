"""Files API routes: upload, download/preview and delete pad attachments."""
from urllib.parse import quote

from fastapi import APIRouter, BackgroundTasks, Depends, File as FastAPIFile, Form, Query, Request, UploadFile
from fastapi.responses import FileResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from securepad.context import AppContext, get_context
from securepad.database import get_db
from securepad.errors import InvalidInput, NotFound
from securepad.schemas.attachment import AttachmentResponse, DeleteResponse, UploadResponse
from securepad.schemas.pad import PasswordRequest
from securepad.services import attachment_store
from securepad.services.alerts import remember_denied, schedule_alert

router = APIRouter(tags=["files"])


async def read_limited(file: UploadFile, limit: int) -> bytes:
    """Read at most limit + 1 bytes, enough to tell an oversized upload apart."""
    return await file.read(limit + 1)


@router.post("/api/upload/{pad_id}", response_model=UploadResponse)
async def upload_file(
    pad_id: str,
    request: Request,
    background: BackgroundTasks,
    password: str = Form(""),
    file: UploadFile | None = FastAPIFile(None),
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Upload a file to a pad. It expires after ATTACHMENT_LIFETIME_HOURS."""
    if file is None:
        raise InvalidInput("No file provided")
    contents = await read_limited(file, ctx.settings.MAX_UPLOAD_BYTES)

    pad, attachment = await attachment_store.upload_attachment(
        ctx, db, pad_id, password,
        filename=file.filename,
        declared_type=file.content_type,
        payload=contents,
        on_denied=remember_denied(request),
    )
    schedule_alert(background, ctx.alerts, request, pad, "file_uploaded", file_name=attachment.original_name)
    return {"success": True, "file": AttachmentResponse.from_record(attachment)}


@router.post("/files/{pad_id}/{file_id}")
async def download_file(
    pad_id: str,
    file_id: str,
    body: PasswordRequest,
    request: Request,
    background: BackgroundTasks,
    inline: bool = Query(False),
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Stream an attachment. inline=true serves it for in-browser preview."""
    pad, attachment = await attachment_store.get_attachment(
        ctx, db, pad_id, body.password, file_id, on_denied=remember_denied(request),
    )
    schedule_alert(background, ctx.alerts, request, pad, "file_downloaded", file_name=attachment.original_name)
    disposition = "inline" if inline else "attachment"

    path = ctx.storage.local_path(attachment.storage_key)
    if path is not None:
        return FileResponse(
            path=path,
            filename=attachment.original_name,
            media_type=attachment.media_type,
            content_disposition_type=disposition,
            background=background,
        )

    try:
        payload = await ctx.storage.read(attachment.storage_key)
    except FileNotFoundError:
        raise NotFound("File not found")
    return Response(
        content=payload,
        media_type=attachment.media_type,
        headers={
            "Content-Disposition": f"{disposition}; filename*=utf-8''{quote(attachment.original_name)}",
        },
        background=background,
    )


@router.post("/files/{pad_id}/{file_id}/delete", response_model=DeleteResponse)
async def delete_file(
    pad_id: str,
    file_id: str,
    body: PasswordRequest,
    request: Request,
    background: BackgroundTasks,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Delete an attachment and its payload before it expires."""
    pad, attachment = await attachment_store.delete_attachment(
        ctx, db, pad_id, body.password, file_id, on_denied=remember_denied(request),
    )
    schedule_alert(background, ctx.alerts, request, pad, "file_deleted", file_name=attachment.original_name)
    return {"deleted": True, "id": attachment.id}
