import pytest

from chat_session_toolkit.errors import MalformedTurnError
from chat_session_toolkit.session.events import ConversationDeleted, SessionEvents, TurnCommitted

from conftest import make_turn


@pytest.mark.asyncio
async def test_handlers_run_in_subscription_order() -> None:
    events = SessionEvents()
    seen: list[str] = []

    async def first(event: TurnCommitted) -> None:
        seen.append(f"first:{event.conversation_id}")

    async def second(event: TurnCommitted) -> None:
        seen.append(f"second:{event.conversation_id}")

    events.subscribe(TurnCommitted, first)
    events.subscribe(TurnCommitted, second)
    await events.publish(TurnCommitted(owner_id="owner-1", conversation_id="conv", turn=make_turn("t1", "conv")))

    assert seen == ["first:conv", "second:conv"]


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_the_others() -> None:
    events = SessionEvents()
    seen: list[str] = []

    async def broken(event: ConversationDeleted) -> None:
        raise RuntimeError("boom")

    async def healthy(event: ConversationDeleted) -> None:
        seen.append(event.conversation_id)

    events.subscribe(ConversationDeleted, broken)
    events.subscribe(ConversationDeleted, healthy)
    await events.publish(ConversationDeleted(owner_id="owner-1", conversation_id="conv"))

    assert seen == ["conv"]


@pytest.mark.asyncio
async def test_handlers_only_receive_their_event_type_until_unsubscribed() -> None:
    events = SessionEvents()
    seen: list[str] = []

    async def on_deleted(event: ConversationDeleted) -> None:
        seen.append(event.conversation_id)

    events.subscribe(ConversationDeleted, on_deleted)
    await events.publish(TurnCommitted(owner_id="owner-1", conversation_id="a", turn=make_turn("t1", "a")))
    await events.publish(ConversationDeleted(owner_id="owner-1", conversation_id="b"))
    events.unsubscribe(ConversationDeleted, on_deleted)
    await events.publish(ConversationDeleted(owner_id="owner-1", conversation_id="c"))

    assert seen == ["b"]


@pytest.mark.asyncio
async def test_session_errors_propagate_out_of_publish() -> None:
    events = SessionEvents()
    seen: list[str] = []

    async def malformed(event: ConversationDeleted) -> None:
        raise MalformedTurnError("no timestamp")

    async def later(event: ConversationDeleted) -> None:
        seen.append(event.conversation_id)

    events.subscribe(ConversationDeleted, malformed)
    events.subscribe(ConversationDeleted, later)

    with pytest.raises(MalformedTurnError):
        await events.publish(ConversationDeleted(owner_id="owner-1", conversation_id="conv"))
    assert seen == []
