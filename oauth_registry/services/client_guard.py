"""Ownership check shared by every client-by-id operation."""

import logging

from oauth_registry.exceptions import ClientNotFoundError
from oauth_registry.models.oauth_client import OAuthClient
from oauth_registry.services.client_store import ClientRepository

logger = logging.getLogger(__name__)


async def authorize_client(store: ClientRepository, user_id: int, client_id: str) -> OAuthClient:
    """
    Load a client on behalf of ``user_id``.

    A client owned by someone else is reported exactly like a missing one.

    Raises:
        ClientNotFoundError: The client does not exist or is not the caller's.
    """
    client = await store.get(client_id)
    if client is None or client.owner_id != user_id:
        logger.info(
            "Client lookup denied",
            extra={"client_id": client_id, "user_id": user_id, "exists": client is not None},
        )
        raise ClientNotFoundError(client_id)
    return client
