import logging
from typing import Any, Mapping, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from app.core.config import Settings

logger = logging.getLogger(__name__)

FAILED_REQUEST_STATUS_CODES = {403, *range(500, 600)}


def init_sentry(settings: Settings) -> bool:
    dsn = (settings.sentry_dsn or "").strip()
    if not dsn:
        logger.debug("Sentry disabled: SENTRY_DSN not set")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=settings.sentry_environment,
        integrations=[
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            FastApiIntegration(
                transaction_style="endpoint",
                failed_request_status_codes=FAILED_REQUEST_STATUS_CODES,
            ),
        ],
        send_default_pii=True,
        traces_sample_rate=settings.sentry_traces_sample_rate,
    )
    logger.info("Sentry initialized (environment=%s)", settings.sentry_environment)
    return True


def capture_exception(
    exc: BaseException,
    *,
    extra: Optional[Mapping[str, Any]] = None,
    tags: Optional[Mapping[str, str]] = None,
) -> None:
    """Report to Sentry as a side channel. Reporting failures are logged and never reach the caller."""
    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in (extra or {}).items():
                scope.set_extra(key, value)
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            sentry_sdk.capture_exception(exc)
    except Exception:
        logger.warning("Failed to report exception to Sentry", exc_info=True)


def capture_message(message: str, level: str = "warning") -> None:
    try:
        sentry_sdk.capture_message(message, level=level)
    except Exception:
        logger.warning("Failed to report message to Sentry", exc_info=True)


def set_user(user_id: str, email: Optional[str] = None, username: Optional[str] = None) -> None:
    sentry_sdk.set_user({"id": user_id, "email": email, "username": username})
