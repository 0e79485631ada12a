"""
Session cache: the open conversation and its visible messages.

'SessionCache' holds the cursor ('current_conversation_id') and the ordered
buffer of 'ChatMessage' objects shown for it. Only 'ConversationSessionManager'
mutates it. Every cursor change bumps 'token'; asynchronous work captures the
token before suspending and installs its result only if the token is unchanged,
which discards results that belong to a conversation the user has left.

Invariants kept by every method:
    - the buffer is sorted ascending by 'created_at';
    - every buffered message has 'conversation_id == current_conversation_id'.
"""

import bisect
from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel

from chat_session_toolkit.remote_log.base import Turn


class ChatMessage(BaseModel):
    """A committed turn as shown in the open conversation."""

    id: str
    conversation_id: str
    prompt: str
    response: str
    created_at: datetime

    @classmethod
    def from_turn(cls, turn: Turn, conversation_id: str | None = None) -> "ChatMessage":
        """Project a stored 'Turn', optionally overriding its grouping key."""
        return cls(
            id=turn.id,
            conversation_id=conversation_id or turn.conversation_id or "",
            prompt=turn.prompt,
            response=turn.response,
            created_at=turn.created_at,
        )


class SessionCache:
    """
    In-memory cursor and message buffer of one session.

    Attributes:
        token: Monotonically increasing counter, bumped on every cursor change.
    """

    def __init__(self) -> None:
        self.token = 0
        self._conversation_id: str | None = None
        self._messages: list[ChatMessage] = []

    @property
    def current_conversation_id(self) -> str | None:
        return self._conversation_id

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def is_current(self, token: int) -> bool:
        return token == self.token

    def set_current(self, conversation_id: str | None, messages: Iterable[ChatMessage] = ()) -> int:
        """
        Replace cursor and buffer in one step and return the new token.

        Messages belonging to another conversation are rejected with 'ValueError'
        before any state changes.
        """
        buffer = sorted(messages, key=lambda m: m.created_at)
        foreign = [m.id for m in buffer if m.conversation_id != conversation_id]
        if foreign:
            raise ValueError(f"Messages {foreign} do not belong to conversation {conversation_id}")
        self.token += 1
        self._conversation_id = conversation_id
        self._messages = buffer
        return self.token

    def install(self, token: int, messages: Iterable[ChatMessage]) -> bool:
        """Fill the buffer of the cursor identified by 'token'. Returns False if the token is stale."""
        if not self.is_current(token):
            return False
        buffer = sorted(messages, key=lambda m: m.created_at)
        if any(m.conversation_id != self._conversation_id for m in buffer):
            raise ValueError(f"Messages do not belong to conversation {self._conversation_id}")
        self._messages = buffer
        return True

    def append_if_current(self, conversation_id: str, message: ChatMessage) -> bool:
        """
        Add 'message' to the buffer if 'conversation_id' is still the cursor.

        The message is placed at its 'created_at' position (after any equal
        timestamps) so writes that resolve out of order keep the buffer sorted.
        A message already in the buffer is not added twice. Returns whether the
        buffer changed.
        """
        if conversation_id != self._conversation_id or message.conversation_id != conversation_id:
            return False
        if any(m.id == message.id for m in self._messages):
            return False
        index = bisect.bisect_right([m.created_at for m in self._messages], message.created_at)
        self._messages.insert(index, message)
        return True

    def clear(self, keep_cursor: bool = True) -> None:
        """Empty the buffer. With 'keep_cursor=False' the cursor is dropped too and the token bumped."""
        self._messages = []
        if not keep_cursor:
            self.token += 1
            self._conversation_id = None
