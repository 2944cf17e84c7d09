import logging

from app.core.exceptions import UpstreamFailure
from app.integrations.clerk import ClerkClient, ClerkError, primary_email
from app.monitoring import sentry

from .schemas import IdentityUserResponse

logger = logging.getLogger(__name__)


async def get_identity_user(clerk: ClerkClient, user_id: str) -> IdentityUserResponse:
    try:
        data = await clerk.get_user(user_id)
    except ClerkError as e:
        sentry.capture_exception(
            e,
            extra={"endpoint": f"/api/v1/users/{user_id}", "user_id": user_id},
            tags={"source": "api", "operation": "clerk.users.get"},
        )
        raise UpstreamFailure("Failed to fetch user")
    return IdentityUserResponse(
        id=data.get("id") or user_id,
        firstName=data.get("first_name") or "",
        lastName=data.get("last_name") or "",
        imageUrl=data.get("image_url") or "",
        email=primary_email(data) or "",
    )
