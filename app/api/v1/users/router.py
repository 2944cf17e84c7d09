from fastapi import APIRouter, Depends, HTTPException

from app.auth.dependencies import get_clerk_client, require_institution_identity
from app.core.exceptions import ServiceError
from app.integrations.clerk import ClerkClient

from .schemas import IdentityUserResponse
from . import service

router = APIRouter(
    prefix="/api/v1/users",
    tags=["users"],
    dependencies=[Depends(require_institution_identity)],
)


@router.get("/{user_id}", response_model=IdentityUserResponse)
async def get_user(
    user_id: str,
    clerk: ClerkClient = Depends(get_clerk_client),
):
    try:
        return await service.get_identity_user(clerk, user_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
