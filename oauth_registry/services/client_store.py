"""
OAuth client persistence.

Narrow async contract over the database for client records. Every write
commits; on a database error the session is rolled back and the error is
re-raised.
"""

import logging
from typing import List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from oauth_registry.models.oauth_client import OAuthClient

logger = logging.getLogger(__name__)


class ClientRepository(Protocol):
    async def get(self, client_id: str) -> Optional[OAuthClient]: ...
    async def list_by_owner(self, owner_id: int) -> List[OAuthClient]: ...
    async def add(self, client: OAuthClient) -> OAuthClient: ...
    async def save(self, client: OAuthClient) -> OAuthClient: ...
    async def delete(self, client: OAuthClient) -> None: ...


class ClientStore:
    """SQLAlchemy-backed :class:`ClientRepository`."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, client_id: str) -> Optional[OAuthClient]:
        result = await self.db.execute(
            select(OAuthClient).where(OAuthClient.client_id == client_id)
        )
        return result.scalar_one_or_none()

    async def list_by_owner(self, owner_id: int) -> List[OAuthClient]:
        result = await self.db.execute(
            select(OAuthClient)
            .where(OAuthClient.owner_id == owner_id)
            .order_by(OAuthClient.created_at, OAuthClient.id)
        )
        return list(result.scalars().all())

    async def add(self, client: OAuthClient) -> OAuthClient:
        self.db.add(client)
        await self._commit()
        await self.db.refresh(client)
        return client

    async def save(self, client: OAuthClient) -> OAuthClient:
        self.db.add(client)
        await self._commit()
        await self.db.refresh(client)
        return client

    async def delete(self, client: OAuthClient) -> None:
        await self.db.delete(client)
        await self._commit()

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError:
            logger.exception("Client store commit failed; rolling back")
            await self.db.rollback()
            raise
