from pydantic import BaseModel


class IdentityUserResponse(BaseModel):
    """Display profile fetched from the identity provider."""

    id: str
    firstName: str = ""
    lastName: str = ""
    imageUrl: str = ""
    email: str = ""
