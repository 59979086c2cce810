"""Summary API route. Gemini when configured, local fallback otherwise."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from securepad.context import AppContext, get_context
from securepad.database import get_db
from securepad.schemas.pad import SummarizeRequest, SummaryResponse
from securepad.services.access import authorize
from securepad.services.alerts import remember_denied

router = APIRouter(prefix="/api", tags=["summaries"])


@router.post("/pad/{pad_id}/summarize", response_model=SummaryResponse)
async def summarize_pad(
    pad_id: str,
    body: SummarizeRequest,
    request: Request,
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    """Summarize the posted text, or the pad's saved content when none is posted."""
    pad = await authorize(ctx, db, pad_id, body.password, on_denied=remember_denied(request))
    text = body.content if body.content is not None else pad.content
    summary = await ctx.summarizer.summarize(text)
    return {
        "summary": summary.summary,
        "key_points": summary.key_points,
        "insights": summary.insights,
        "source": summary.source,
    }
