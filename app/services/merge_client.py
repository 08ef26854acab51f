from __future__ import annotations

import logging
from typing import Any

import aiohttp

from app.core.config import Settings

logger = logging.getLogger(__name__)


class MergeApiError(RuntimeError):
    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"Merge API request failed: {status} - {message}")
        self.status = status


class MergeClientService:
    """Merge.dev unified HRIS client."""

    def __init__(self) -> None:
        self.initialized = False
        self.base_url = ""
        self.api_key = ""
        self.page_size = 100
        self.max_pages = 1000
        self.timeout_seconds = 30

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.MERGE_API_KEY:
            logger.warning("Merge API key missing — MergeClientService not initialized")
            return

        self.base_url = settings.MERGE_API_BASE_URL.rstrip("/")
        self.api_key = settings.MERGE_API_KEY
        self.page_size = settings.MERGE_PAGE_SIZE
        self.max_pages = settings.MERGE_MAX_PAGES
        self.timeout_seconds = settings.MERGE_TIMEOUT_SECONDS
        self.initialized = True

    async def close(self) -> None:
        self.initialized = False
        self.base_url = ""
        self.api_key = ""

    def _headers(self, account_token: str) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "X-Account-Token": account_token,
        }

    async def get_employees(self, account_token: str) -> list[dict[str, Any]]:
        """Fetch every employee of the linked account, following ``next`` cursors.

        Records are returned as the provider sent them; the sync validates
        each one on its own so a malformed row fails alone.
        """
        if not self.initialized:
            raise RuntimeError("MergeClientService not initialized")

        url = f"{self.base_url}/employees"
        headers = self._headers(account_token)
        employees: list[dict[str, Any]] = []
        cursor: str | None = None

        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            for page in range(self.max_pages):
                params: dict[str, Any] = {"page_size": self.page_size}
                if cursor:
                    params["cursor"] = cursor

                async with session.get(url, headers=headers, params=params) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise MergeApiError(response.status, error_text)
                    data = await response.json()

                results = data.get("results") or []
                employees.extend(results)
                logger.debug("Fetched page %d (%d employees)", page + 1, len(results))

                cursor = data.get("next")
                if not cursor:
                    break
            else:
                raise MergeApiError(0, f"Pagination exceeded {self.max_pages} pages")

        logger.info("Fetched %d employees from Merge", len(employees))
        return employees


merge_client = MergeClientService()
