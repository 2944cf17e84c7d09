import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.auth.schemas import CurrentIdentity
from app.core.config import Settings
from app.integrations.clerk import ClerkClient, ClerkError
from app.monitoring import sentry

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_clerk_client(request: Request) -> ClerkClient:
    return request.app.state.clerk


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> CurrentIdentity:
    """Verify the session token and return the caller's external identity."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or not credentials.credentials:
        raise credentials_exception

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.clerk_jwt_key,
            algorithms=[settings.clerk_jwt_algorithm],
            options={"verify_aud": False},
        )
    except JWTError:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    email = payload.get("email")
    return CurrentIdentity(user_id=user_id, email=email.lower() if email else None)


async def require_institution_identity(
    identity: CurrentIdentity = Depends(get_current_identity),
    settings: Settings = Depends(get_settings),
    clerk: ClerkClient = Depends(get_clerk_client),
) -> CurrentIdentity:
    """Only institution accounts may use the API. Falls back to the provider when the token has no email."""
    email = identity.email
    if not email:
        try:
            email = await clerk.get_primary_email(identity.user_id)
        except ClerkError as e:
            sentry.capture_exception(e, tags={"source": "clerk", "operation": "users.get"})
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="User lookup failed")
        identity = identity.model_copy(update={"email": email})

    if not email.endswith(settings.teacher_email_domain):
        logger.warning("Rejected identity %s with non-institution email", identity.user_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")

    sentry.set_user(identity.user_id, email=email)
    return identity
