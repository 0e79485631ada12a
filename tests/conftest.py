import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from chat_session_toolkit.remote_log.base import Owner, Turn, TurnInsert
from chat_session_toolkit.remote_log.in_memory import InMemoryRemoteLogClient
from chat_session_toolkit.session.manager import ConversationSessionManager

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def make_turn(
    turn_id: str,
    conversation_id: str | None,
    prompt: str = "prompt",
    response: str = "response",
    minutes: int = 0,
    owner_id: str = "owner-1",
) -> Turn:
    return Turn(
        id=turn_id,
        owner_id=owner_id,
        conversation_id=conversation_id,
        prompt=prompt,
        response=response,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run until they block on a gate."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class GatedRemoteLogClient(InMemoryRemoteLogClient):
    """
    In-memory log whose next call to an operation can be held open.

    The remote side completes immediately (rows are stored or snapshotted), but
    the result is handed back to the caller only once the gate is set. This
    reproduces a response that is delayed on the way back to the client.
    """

    def __init__(self, turns: list[Turn] | None = None) -> None:
        super().__init__(turns)
        self._gates: dict[str, asyncio.Event] = {}

    def hold(self, operation: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[operation] = gate
        return gate

    async def _release(self, gate: asyncio.Event | None) -> None:
        if gate is not None:
            await gate.wait()

    async def insert(self, turn: TurnInsert) -> Turn:
        gate = self._gates.pop("insert", None)
        stored = await super().insert(turn)
        await self._release(gate)
        return stored

    async def select_by_owner(self, owner_id: str) -> list[Turn]:
        gate = self._gates.pop("select_by_owner", None)
        turns = await super().select_by_owner(owner_id)
        await self._release(gate)
        return turns

    async def select_by_owner_and_conversation(self, owner_id: str, conversation_id: str) -> list[Turn]:
        gate = self._gates.pop("select_by_owner_and_conversation", None)
        turns = await super().select_by_owner_and_conversation(owner_id, conversation_id)
        await self._release(gate)
        return turns

    async def delete_by_owner_and_conversation(self, owner_id: str, conversation_id: str) -> None:
        gate = self._gates.pop("delete_by_owner_and_conversation", None)
        await super().delete_by_owner_and_conversation(owner_id, conversation_id)
        await self._release(gate)


@pytest.fixture
def owner() -> Owner:
    return Owner(id="owner-1", email="ada@example.com", name="Ada")


@pytest.fixture
def remote() -> GatedRemoteLogClient:
    return GatedRemoteLogClient()


@pytest.fixture
def manager(remote: GatedRemoteLogClient, owner: Owner) -> ConversationSessionManager:
    return ConversationSessionManager(remote, owner)
