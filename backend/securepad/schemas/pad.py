"""Pad request/response schemas."""
from datetime import datetime
from typing import Optional

from pydantic import EmailStr

from securepad.schemas.attachment import AttachmentResponse
from securepad.schemas.base import CamelModel


class PasswordRequest(CamelModel):
    password: str = ""


class PadCreate(CamelModel):
    password: str = ""
    alert_email: Optional[EmailStr] = None


class CreatePadRequest(PadCreate):
    """Create with an optional client-chosen id; one is generated when omitted."""
    url_name: Optional[str] = None


class LoginRequest(CamelModel):
    url_name: str = ""
    password: str = ""


class SaveRequest(CamelModel):
    password: str = ""
    content: str


class SummarizeRequest(CamelModel):
    password: str = ""
    content: Optional[str] = None


class ExistsResponse(CamelModel):
    exists: bool


class AvailabilityResponse(CamelModel):
    available: bool
    error: Optional[str] = None


class SuccessResponse(CamelModel):
    success: bool = True
    pad_id: Optional[str] = None


class SaveResponse(CamelModel):
    success: bool = True
    updated_at: datetime


class PadContentResponse(CamelModel):
    content: str
    files: list[AttachmentResponse]
    created_at: datetime
    updated_at: datetime


class SummaryResponse(CamelModel):
    summary: str
    key_points: list[str]
    insights: str
    source: str
