import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.bookings.router import router as bookings_router
from app.api.v1.calendar.router import router as calendar_router
from app.api.v1.commons.router import router as commons_router
from app.api.v1.slots.router import router as slots_router
from app.api.v1.subjects.router import router as subjects_router
from app.api.v1.users.router import router as users_router
from app.api.v1.webhooks.router import router as webhooks_router
from app.core.config import Settings, settings as default_settings
from app.db.session import build_engine, build_session_factory
from app.integrations.clerk import ClerkClient
from app.monitoring.sentry import init_sentry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the engine and identity-provider client for this process; dispose them on shutdown."""
    settings: Settings = app.state.settings
    init_sentry(settings)

    engine = None
    if getattr(app.state, "session_factory", None) is None:
        engine = build_engine(settings.database_url)
        app.state.session_factory = build_session_factory(engine)

    owns_clerk = getattr(app.state, "clerk", None) is None
    if owns_clerk:
        app.state.clerk = ClerkClient(
            secret_key=settings.clerk_secret_key,
            base_url=settings.clerk_api_url,
            timeout=settings.clerk_timeout_seconds,
        )
    logger.info("Room booking backend started")
    try:
        yield
    finally:
        if owns_clerk:
            await app.state.clerk.aclose()
            app.state.clerk = None
        if engine is not None:
            await engine.dispose()
            app.state.session_factory = None


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed request bodies and query parameters are reported as 400, like missing fields
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="Room Booking Backend", lifespan=lifespan)
    app.state.settings = settings
    app.state.session_factory = None
    app.state.clerk = None

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Routers
    app.include_router(commons_router)
    app.include_router(slots_router)
    app.include_router(subjects_router)
    app.include_router(bookings_router)
    app.include_router(calendar_router)
    app.include_router(users_router)
    app.include_router(webhooks_router)

    return app


app = create_app()
