"""
Remote chat log data models and client interface.

The remote store is a single flat, append-only table of chat turns. Each turn is
one prompt/response pair owned by a user and grouped by a client-minted
conversation id. A conversation is never stored on its own: it exists only as
the set of turns sharing that id.

The 'RemoteLogClient' ABC is the pluggable access layer for that table. Concrete
implementations ('InMemoryRemoteLogClient', or an adapter over a hosted table API)
are interchangeable at construction time, keeping the session manager free of
transport-specific code. Implementations may raise any exception on failure; the
manager converts them into 'RemoteWriteError' / 'RemoteReadError'.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel


class Owner(BaseModel):
    """The logged-in user a session is scoped to."""

    id: str
    email: str = ""
    name: str = "Unknown User"


class TurnInsert(BaseModel):
    """
    Payload of a new turn.

    'session_id' is kept for compatibility with the table layout; the session
    manager fills it with the owner id.
    """

    owner_id: str
    owner_email: str
    owner_name: str
    prompt: str
    response: str
    conversation_id: str
    session_id: str


class Turn(BaseModel):
    """
    A turn as stored in the remote log.

    'id' and 'created_at' are assigned by the store. 'conversation_id' can be
    None on rows written by clients that predate conversation grouping.
    """

    id: str
    owner_id: str
    conversation_id: str | None
    prompt: str
    response: str
    created_at: datetime | None


class RemoteLogClient(ABC):
    """Abstract client for the remote table of 'Turn' records."""

    @abstractmethod
    async def insert(self, turn: TurnInsert) -> Turn:
        """Persist 'turn' and return the stored row."""
        pass

    @abstractmethod
    async def select_by_owner(self, owner_id: str) -> list[Turn]:
        """Return every turn owned by 'owner_id', newest first."""
        pass

    @abstractmethod
    async def select_by_owner_and_conversation(self, owner_id: str, conversation_id: str) -> list[Turn]:
        """Return the turns of one conversation, oldest first."""
        pass

    @abstractmethod
    async def delete_by_owner_and_conversation(self, owner_id: str, conversation_id: str) -> None:
        pass
