from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import CurrentIdentity, CurrentTeacher
from app.core.exceptions import TeacherNotFound, Unauthenticated, UpstreamFailure
from app.core.models import User
from app.monitoring import sentry


async def resolve_teacher(db: AsyncSession, identity: Optional[CurrentIdentity]) -> CurrentTeacher:
    """Map the caller's external identity to its users row."""
    if identity is None or not identity.user_id:
        raise Unauthenticated()
    try:
        result = await db.execute(select(User).where(User.user_id == identity.user_id))
        user = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        sentry.capture_exception(e, extra={"operation": "users.select", "user_id": identity.user_id})
        raise UpstreamFailure("User lookup failed")
    if user is None:
        sentry.capture_message(f"User not found for identity {identity.user_id}")
        raise TeacherNotFound()
    return CurrentTeacher(
        id=user.id,
        user_id=user.user_id,
        name=user.name,
        email=user.email,
        role=user.role,
    )
