"""FastAPI application entry point."""
import asyncio
import logging
import traceback
from contextlib import asynccontextmanager, suppress

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from securepad.config import Settings, settings as default_settings
from securepad.context import AppContext
from securepad.database import get_db
from securepad.errors import PadError
from securepad.routes.files import router as files_router
from securepad.routes.pads import router as pads_router
from securepad.routes.summaries import router as summaries_router
from securepad.services.alerts import denied_alert_task
from securepad.services.sweeper import sweeper_loop

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and storage on startup, run the expiration sweeper until shutdown."""
    ctx: AppContext = app.state.context
    configure_logging(ctx.settings.LOG_LEVEL)
    await ctx.start()

    # The sweeper's first pass runs right away to clear any backlog from downtime
    sweeper_task = None
    if ctx.settings.SWEEPER_ENABLED:
        sweeper_task = asyncio.create_task(sweeper_loop(ctx))
    app.state.sweeper_task = sweeper_task

    yield

    if sweeper_task is not None:
        sweeper_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper_task
    await ctx.close()


async def pad_error_handler(request: Request, exc: PadError):
    background = denied_alert_task(request, request.app.state.context.alerts)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        background=background,
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    logger.error(traceback.format_exc())
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "internal_error"},
    )


def create_app(settings: Settings | None = None, context: AppContext | None = None) -> FastAPI:
    """Build the app around an explicit context; tests pass their own."""
    settings = settings or (context.settings if context else default_settings)
    context = context or AppContext(settings)

    app = FastAPI(
        title="SecurePad API",
        version="1.0.0",
        description="Password-protected notes with expiring attachments.",
        lifespan=lifespan,
    )
    app.state.context = context

    # CORS
    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PadError, pad_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/api/health")
    async def health_check(db: AsyncSession = Depends(get_db)):
        """Verify API and database connectivity."""
        try:
            await db.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
        except Exception as e:
            return {"status": "error", "database": str(e)}

    app.include_router(pads_router)
    app.include_router(files_router)
    app.include_router(summaries_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("securepad.main:app", host="0.0.0.0", port=default_settings.API_PORT)
