"""
Conversation aggregation.

'summarize' folds the flat rows of the remote log into one 'ConversationSummary'
per conversation id. The fold is order-independent: the first and last turns are
picked by 'created_at' comparison (min / max), the count is the group size, so the
same set of turns always yields the same summaries. When two turns of a group
share the earliest (or latest) timestamp, the one seen first in the input wins;
that tie-break is implementation-defined.

Summaries are derived data. They are recomputed from the remote rows on every
refresh and never stored, so a conversation id with no turns never appears.
"""

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel

from chat_session_toolkit.config import SessionSettings
from chat_session_toolkit.errors import MalformedTurnError
from chat_session_toolkit.remote_log.base import Turn


class ConversationSummary(BaseModel):
    """UI-facing projection of a conversation."""

    id: str
    title: str
    last_message_preview: str
    created_at: datetime
    message_count: int


class _Group:
    def __init__(self, turn: Turn) -> None:
        self.first = turn
        self.last = turn
        self.count = 0

    def add(self, turn: Turn) -> None:
        self.count += 1
        if turn.created_at < self.first.created_at:  # type: ignore[operator]
            self.first = turn
        if turn.created_at > self.last.created_at:  # type: ignore[operator]
            self.last = turn


def truncate(text: str, max_length: int, ellipsis: str = "...") -> str:
    """Cut 'text' to 'max_length' characters and append 'ellipsis' if it was longer."""
    if len(text) > max_length:
        return text[:max_length] + ellipsis
    return text


def summarize(turns: Iterable[Turn], settings: SessionSettings | None = None) -> list[ConversationSummary]:
    """
    Group 'turns' by conversation id and return their summaries, newest conversation first.

    Args:
        turns: Rows of the remote log, in any order.
        settings: Truncation limits and the grouping key for turns without a
            conversation id. Defaults to 'SessionSettings()'.

    Raises:
        MalformedTurnError: A turn has no 'created_at'.
    """
    settings = settings or SessionSettings()
    groups: dict[str, _Group] = {}

    for turn in turns:
        if turn.created_at is None:
            raise MalformedTurnError(f"Turn {turn.id} has no created_at timestamp")
        conversation_id = turn.conversation_id or settings.default_conversation_id
        if conversation_id not in groups:
            groups[conversation_id] = _Group(turn)
        groups[conversation_id].add(turn)

    summaries = [
        ConversationSummary(
            id=conversation_id,
            title=truncate(group.first.prompt, settings.title_max_length, settings.ellipsis),
            last_message_preview=truncate(group.last.response, settings.preview_max_length, settings.ellipsis),
            created_at=group.first.created_at,  # type: ignore[arg-type]
            message_count=group.count,
        )
        for conversation_id, group in groups.items()
    ]
    summaries.sort(key=lambda s: s.created_at, reverse=True)
    return summaries
