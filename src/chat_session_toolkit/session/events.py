"""
Session events.

Writes and read-refreshes are decoupled through a small publish/subscribe bus:
the manager publishes 'TurnCommitted' after a successful insert and
'ConversationDeleted' after a successful delete, and anything interested in
those commits (the manager's own summary refresh, a UI notifier, a test probe)
subscribes to them.

Handlers are coroutines awaited in subscription order. A handler raising a
'SessionError' (a malformed row, a closed session) aborts the publish and
the operation that triggered it. Any other handler failure is logged and the
remaining handlers still run.
"""

from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel

from chat_session_toolkit.errors import SessionError
from chat_session_toolkit.remote_log.base import Turn


class SessionEvent(BaseModel):
    owner_id: str
    conversation_id: str


class TurnCommitted(SessionEvent):
    """A turn was durably written to the remote log."""

    turn: Turn


class ConversationDeleted(SessionEvent):
    """All turns of a conversation were removed from the remote log."""


E = TypeVar("E", bound=SessionEvent)
Handler = Callable[[Any], Awaitable[None]]


class SessionEvents:
    def __init__(self) -> None:
        self._handlers: dict[type[SessionEvent], list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], Awaitable[None]]) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[E], handler: Callable[[E], Awaitable[None]]) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    async def publish(self, event: SessionEvent) -> None:
        for handler in list(self._handlers.get(type(event), [])):
            try:
                await handler(event)
            except SessionError:
                raise
            except Exception as exc:
                logger.exception(f"Handler {handler!r} failed on {type(event).__name__}: {exc}")
