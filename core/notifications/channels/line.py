"""LINE Messaging API push channel (multicast)."""

import logging

import httpx

from core.config import get_line_channel_access_token
from core.constants import MULTICAST_MAX_RECIPIENTS

logger = logging.getLogger(__name__)

LINE_MULTICAST_URL = "https://api.line.me/v2/bot/message/multicast"
REQUEST_TIMEOUT_SECONDS = 30.0


class GatewayNotConfiguredError(Exception):
    """Raised when LINE_CHANNEL_ACCESS_TOKEN is not set."""

    pass


def require_gateway_configured() -> str:
    """
    Return the channel access token.

    Raises:
        GatewayNotConfiguredError: If the token is missing
    """
    token = get_line_channel_access_token()
    if not token:
        raise GatewayNotConfiguredError(
            "LINE_CHANNEL_ACCESS_TOKEN environment variable is required "
            "to send push notifications."
        )
    return token


def chunk_recipients(
    user_ids: list[str], size: int = MULTICAST_MAX_RECIPIENTS
) -> list[list[str]]:
    """Split a recipient list into multicast-sized batches."""
    return [user_ids[i : i + size] for i in range(0, len(user_ids), size)]


async def _post_batches(
    client: httpx.AsyncClient,
    token: str,
    batches: list[list[str]],
    messages: list[dict],
) -> bool:
    headers = {"Authorization": f"Bearer {token}"}
    for index, batch in enumerate(batches):
        response = await client.post(
            LINE_MULTICAST_URL,
            json={"to": batch, "messages": messages},
            headers=headers,
        )
        if not response.is_success:
            logger.error(
                f"LINE multicast batch {index + 1}/{len(batches)} failed: "
                f"HTTP {response.status_code} {response.text[:200]}"
            )
            return False
    return True


async def send_multicast(
    user_ids: list[str],
    messages: list[dict],
    client: httpx.AsyncClient | None = None,
) -> bool:
    """
    Send the same messages to many LINE users.

    One HTTP call per 500 recipients; the gateway fans out to everyone in
    the batch. Success is per call, not per recipient.

    Args:
        user_ids: LINE user IDs
        messages: Message objects (max 5 per LINE API rules)
        client: Optional shared httpx client

    Returns:
        True if every batch was accepted, False otherwise

    Raises:
        GatewayNotConfiguredError: If the channel access token is missing
    """
    token = require_gateway_configured()
    if not user_ids:
        return False

    batches = chunk_recipients(user_ids)
    try:
        if client is not None:
            return await _post_batches(client, token, batches, messages)
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as own_client:
            return await _post_batches(own_client, token, batches, messages)
    except httpx.HTTPError as e:
        logger.error(f"LINE multicast request failed: {e}")
        return False
