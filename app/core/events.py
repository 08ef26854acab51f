"""In-process event bus for domain notifications."""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

logger = logging.getLogger(__name__)

HRIS_SYNC_COMPLETED = "hris.sync.completed"
PERSON_CREATED = "person.created"
PERSON_UPDATED = "person.updated"

EventHandler = Callable[[BaseModel], Awaitable[None] | None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        self._handlers[event_name].append(handler)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, event_name: str, event: BaseModel) -> None:
        for handler in list(self._handlers.get(event_name, [])):
            await self._call(handler, event)

    async def emit_safely(self, event_name: str, event: BaseModel) -> None:
        """Emit to every handler; a failing handler is logged and the rest still run."""
        for handler in list(self._handlers.get(event_name, [])):
            try:
                await self._call(handler, event)
            except Exception:
                logger.exception("Handler %r failed for event %s", handler, event_name)

    @staticmethod
    async def _call(handler: EventHandler, event: BaseModel) -> None:
        result = handler(event)
        if inspect.isawaitable(result):
            await result


class HrisSyncCompletedEvent(BaseModel):
    organization_id: str
    user_id: str
    created: int
    updated: int
    skipped: int
    error_count: int
    duration_ms: int
    cancelled: bool = False


class PersonEvent(BaseModel):
    organization_id: str
    actor_user_id: str
    person_id: str
    changes: list[str] = []


event_bus = EventBus()
