"""Stripe billing client — subscription cancellation over the REST API."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from shortlink.config import settings

logger = structlog.get_logger()


class BillingError(Exception):
    """Stripe rejected the request or could not be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


async def _cancel(client: httpx.AsyncClient, subscription_id: str) -> dict[str, Any]:
    url = f"{settings.stripe_api_base}/subscriptions/{subscription_id}"
    try:
        response = await client.delete(
            url,
            headers={"Authorization": f"Bearer {settings.stripe_secret_key}"},
            timeout=settings.billing_timeout_seconds,
        )
    except httpx.TimeoutException as exc:
        raise BillingError(f"Timeout cancelling subscription {subscription_id}") from exc
    except httpx.RequestError as exc:
        raise BillingError(
            f"Network error cancelling subscription {subscription_id}: {type(exc).__name__}"
        ) from exc

    if response.status_code >= 400:
        try:
            message = response.json().get("error", {}).get("message", "")
        except ValueError:
            message = response.text[:200]
        raise BillingError(
            f"Stripe HTTP {response.status_code} cancelling {subscription_id}: {message}",
            status_code=response.status_code,
        )
    body: dict[str, Any] = response.json()
    return body


async def cancel_subscription(
    subscription_id: str, *, client: httpx.AsyncClient | None = None
) -> dict[str, Any]:
    """Cancel a Stripe subscription immediately.

    Returns a summary of the cancelled subscription (id, status). Pass
    ``client`` to reuse a connection pool; otherwise a short-lived one is used.
    """
    if client is not None:
        body = await _cancel(client, subscription_id)
    else:
        async with httpx.AsyncClient() as own_client:
            body = await _cancel(own_client, subscription_id)
    logger.info("billing_subscription_cancelled", subscription_id=subscription_id)
    return {"id": body.get("id", subscription_id), "status": body.get("status")}
