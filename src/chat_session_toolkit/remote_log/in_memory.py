"""
In-process implementation of 'RemoteLogClient'.

Rows live in a plain list and every call yields to the event loop once, so code
driving it observes the same suspension points as with a networked store. The
store assigns ids and strictly increasing UTC timestamps, which keeps ordering
deterministic in tests even when calls land within the same clock tick.
"""

import asyncio
from datetime import UTC, datetime, timedelta

from loguru import logger

from chat_session_toolkit.remote_log.base import RemoteLogClient, Turn, TurnInsert
from chat_session_toolkit.utils.database import generate_uid
from chat_session_toolkit.utils.time import get_current_timestamp


def _created_at(turn: Turn) -> datetime:
    return turn.created_at or datetime.min.replace(tzinfo=UTC)


class InMemoryRemoteLogClient(RemoteLogClient):
    """
    Remote log kept in memory.

    Attributes:
        turns: Stored rows in insertion order.
        calls: Names of the operations invoked so far, in call order.
    """

    def __init__(self, turns: list[Turn] | None = None) -> None:
        self.turns: list[Turn] = list(turns or [])
        self.calls: list[str] = []
        self._failures: dict[str, Exception] = {}
        self._last_timestamp = max((t.created_at for t in self.turns if t.created_at), default=None)

    def fail_next(self, operation: str, error: Exception | None = None) -> None:
        """Make the next call to 'operation' raise 'error' (a 'ConnectionError' by default)."""
        self._failures[operation] = error or ConnectionError(f"{operation} failed")

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        await asyncio.sleep(0)
        failure = self._failures.pop(operation, None)
        if failure is not None:
            raise failure

    def _next_timestamp(self) -> datetime:
        now = get_current_timestamp()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    async def insert(self, turn: TurnInsert) -> Turn:
        await self._enter("insert")
        stored = Turn(
            id=generate_uid(),
            owner_id=turn.owner_id,
            conversation_id=turn.conversation_id,
            prompt=turn.prompt,
            response=turn.response,
            created_at=self._next_timestamp(),
        )
        self.turns.append(stored)
        return stored

    async def select_by_owner(self, owner_id: str) -> list[Turn]:
        await self._enter("select_by_owner")
        owned = [t for t in self.turns if t.owner_id == owner_id]
        return sorted(owned, key=_created_at, reverse=True)

    async def select_by_owner_and_conversation(self, owner_id: str, conversation_id: str) -> list[Turn]:
        await self._enter("select_by_owner_and_conversation")
        owned = [t for t in self.turns if t.owner_id == owner_id and t.conversation_id == conversation_id]
        return sorted(owned, key=_created_at)

    async def delete_by_owner_and_conversation(self, owner_id: str, conversation_id: str) -> None:
        await self._enter("delete_by_owner_and_conversation")
        before = len(self.turns)
        self.turns = [
            t for t in self.turns if not (t.owner_id == owner_id and t.conversation_id == conversation_id)
        ]
        logger.debug(f"Deleted {before - len(self.turns)} turns of conversation {conversation_id}")
