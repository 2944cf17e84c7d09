"""Sync identity-provider users into the users table. Only institution teachers (and developers) are kept."""

import logging
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.models import User
from app.integrations.clerk import primary_email
from app.monitoring import sentry

logger = logging.getLogger(__name__)

USER_CREATED = "user.created"


def is_teacher_email(email: str, settings: Settings) -> bool:
    return not email.startswith(settings.student_email_prefix) and email.endswith(settings.teacher_email_domain)


def is_dev_email(email: str, settings: Settings) -> bool:
    return bool(settings.dev_email_prefix) and email.startswith(settings.dev_email_prefix)


async def insert_user(db: AsyncSession, data: Mapping[str, Any], email: str) -> Optional[User]:
    """Insert the teacher row. A duplicate is logged and ignored."""
    user = User(
        user_id=data["id"],
        name=f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip(),
        email=email,
        role="teacher",
    )
    try:
        db.add(user)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.info("User %s already exists", email)
        sentry.capture_exception(e, extra={"operation": "users.insert", "email": email})
        return None
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("users.insert failed for %s: %s", email, e)
        sentry.capture_exception(e, extra={"operation": "users.insert", "email": email})
        return None
    return user


async def handle_event(db: AsyncSession, event: Mapping[str, Any], settings: Settings) -> Optional[User]:
    """Returns the inserted user, or None when the event was acknowledged without a write."""
    if event.get("type") != USER_CREATED:
        return None
    data = event.get("data") or {}
    email = primary_email(data)
    if not email or not data.get("id") or "first_name" not in data or "last_name" not in data:
        return None

    if not (is_teacher_email(email, settings) or is_dev_email(email, settings)):
        logger.info("Skipping non-teacher account %s", data.get("id"))
        return None

    user = await insert_user(db, data, email)
    if user is not None:
        kind = "dev" if is_dev_email(email, settings) else "teacher"
        logger.info("Added %s %s (%s)", kind, user.name, email)
    return user
