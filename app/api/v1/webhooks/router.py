import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_settings
from app.core.config import Settings
from app.db.session import get_db
from app.integrations.clerk import WebhookVerificationError, verify_webhook
from app.monitoring import sentry

from . import service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


@router.post("/clerk", response_class=PlainTextResponse)
async def clerk_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    body = await request.body()
    try:
        event = verify_webhook(settings.clerk_webhook_secret, request.headers, body)
    except WebhookVerificationError as e:
        logger.warning("Rejected identity webhook: %s", e)
        sentry.capture_exception(e, tags={"source": "webhook"})
        return PlainTextResponse("Error verifying webhook", status_code=400)

    await service.handle_event(db, event, settings)
    return PlainTextResponse("Webhook received", status_code=200)
