"""Identity provider (Clerk) REST client and webhook signature verification."""

import base64
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)

WEBHOOK_TOLERANCE_SECONDS = 5 * 60


class ClerkError(RuntimeError):
    """Raised when the identity provider API fails or responds with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WebhookVerificationError(ValueError):
    pass


class ClerkClient:
    """Thin async client for the user API. One instance per process, closed on shutdown."""

    def __init__(
        self,
        *,
        secret_key: str,
        base_url: str = "https://api.clerk.com/v1",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {secret_key}",
                "Content-Type": "application/json",
            },
        )

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        if not user_id:
            raise ValueError("user_id must be provided")
        try:
            response = await self._client.get(f"/users/{user_id}")
        except httpx.HTTPError as exc:
            logger.error("Clerk request failed for user %s: %s", user_id, exc)
            raise ClerkError(f"Failed to fetch user: {exc}") from exc
        if response.status_code >= 400:
            logger.error("Clerk API error %s for user %s", response.status_code, user_id)
            raise ClerkError(f"Failed to fetch user: {response.status_code}", response.status_code)
        return response.json()

    async def get_primary_email(self, user_id: str) -> str:
        return primary_email(await self.get_user(user_id)) or ""

    async def aclose(self) -> None:
        await self._client.aclose()


def primary_email(user: Mapping[str, Any]) -> Optional[str]:
    """First email address of a provider user payload, lower-cased."""
    addresses = user.get("email_addresses")
    if isinstance(addresses, list) and addresses:
        email = (addresses[0] or {}).get("email_address")
        if email:
            return str(email).lower()
    return None


def _secret_bytes(secret: str) -> bytes:
    if secret.startswith("whsec_"):
        secret = secret[len("whsec_"):]
    return base64.b64decode(secret)


def sign_webhook(secret: str, msg_id: str, timestamp: str, body: bytes) -> str:
    signed = f"{msg_id}.{timestamp}.".encode("utf-8") + body
    digest = hmac.new(_secret_bytes(secret), signed, hashlib.sha256).digest()
    return "v1," + base64.b64encode(digest).decode("ascii")


def verify_webhook(
    secret: str,
    headers: Mapping[str, str],
    body: bytes,
    now: Optional[float] = None,
) -> Dict[str, Any]:
    """Check svix-id/svix-timestamp/svix-signature and return the decoded event."""
    if not secret:
        raise WebhookVerificationError("Webhook secret is not configured")
    msg_id = headers.get("svix-id")
    timestamp = headers.get("svix-timestamp")
    signature_header = headers.get("svix-signature")
    if not msg_id or not timestamp or not signature_header:
        raise WebhookVerificationError("Missing webhook signature headers")

    try:
        ts = int(timestamp)
    except ValueError:
        raise WebhookVerificationError("Invalid webhook timestamp")
    current = time.time() if now is None else now
    if abs(current - ts) > WEBHOOK_TOLERANCE_SECONDS:
        raise WebhookVerificationError("Webhook timestamp outside tolerance")

    expected = sign_webhook(secret, msg_id, timestamp, body)
    # Header may carry several space-separated signatures during secret rotation
    if not any(hmac.compare_digest(expected, candidate) for candidate in signature_header.split()):
        raise WebhookVerificationError("Webhook signature mismatch")

    try:
        event = json.loads(body)
    except json.JSONDecodeError:
        raise WebhookVerificationError("Webhook body is not valid JSON")
    if not isinstance(event, dict):
        raise WebhookVerificationError("Webhook body is not a JSON object")
    return event
