"""Cosmos DB access shared by the employee and person services.

Both containers are partitioned by ``/organization_id`` so every query is
scoped to one tenant and never crosses organizations.
"""

from __future__ import annotations

import logging
from typing import Any

from azure.cosmos.aio import CosmosClient
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from app.core.config import Settings

logger = logging.getLogger(__name__)


class CosmosRepository:
    """Thin document repository over a single Cosmos container."""

    def __init__(self, container: Any) -> None:
        self.container = container

    async def find_first(self, organization_id: str, any_of: dict[str, Any]) -> dict[str, Any] | None:
        """Return the first document whose fields match ANY of ``any_of``."""
        conditions: list[str] = []
        params: list[dict[str, Any]] = [{"name": "@organization_id", "value": organization_id}]
        for idx, (field, value) in enumerate(any_of.items()):
            conditions.append(f"c.{field} = @v{idx}")
            params.append({"name": f"@v{idx}", "value": value})

        query = "SELECT * FROM c WHERE c.organization_id = @organization_id"
        if conditions:
            query += " AND (" + " OR ".join(conditions) + ")"

        async for item in self.container.query_items(
            query=query,
            parameters=params,
            partition_key=organization_id,
        ):
            return item
        return None

    async def find_all(self, organization_id: str, skip: int = 0, limit: int = 50) -> list[dict[str, Any]]:
        query = "SELECT * FROM c WHERE c.organization_id = @organization_id OFFSET @skip LIMIT @limit"
        params: list[dict[str, Any]] = [
            {"name": "@organization_id", "value": organization_id},
            {"name": "@skip", "value": skip},
            {"name": "@limit", "value": limit},
        ]
        items: list[dict[str, Any]] = []
        async for item in self.container.query_items(
            query=query,
            parameters=params,
            partition_key=organization_id,
        ):
            items.append(item)
        return items

    async def read(self, item_id: str, organization_id: str) -> dict[str, Any] | None:
        try:
            return await self.container.read_item(item=item_id, partition_key=organization_id)
        except CosmosResourceNotFoundError:
            return None

    async def create(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self.container.create_item(body=body)

    async def replace(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self.container.replace_item(item=body["id"], body=body)


class CosmosDatabase:
    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.database: Any = None
        self.initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.COSMOS_DB_ENDPOINT or not settings.COSMOS_DB_KEY:
            logger.warning("Cosmos DB credentials missing — database not initialized")
            return

        self.client = CosmosClient(settings.COSMOS_DB_ENDPOINT, settings.COSMOS_DB_KEY)
        self.database = self.client.get_database_client(settings.COSMOS_DB_DATABASE)
        self.initialized = True
        logger.info("CosmosDatabase initialized (database=%s)", settings.COSMOS_DB_DATABASE)

    async def close(self) -> None:
        if self.client:
            await self.client.close()
        self.client = None
        self.database = None
        self.initialized = False

    def repository(self, container_name: str) -> CosmosRepository:
        if not self.initialized:
            raise RuntimeError("CosmosDatabase not initialized")
        return CosmosRepository(self.database.get_container_client(container_name))


cosmos_database = CosmosDatabase()
