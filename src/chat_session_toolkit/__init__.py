"""
Client-side conversation session management over a remote chat log.

    from chat_session_toolkit import ConversationSessionManager, InMemoryRemoteLogClient, Owner

    manager = ConversationSessionManager(InMemoryRemoteLogClient(), Owner(id="user-1"))
    await manager.start()
    conversation_id = await manager.log_message("Hello", "Hi, how can I help?")
"""

from chat_session_toolkit.aggregation import ConversationSummary, summarize, truncate
from chat_session_toolkit.config import SessionSettings, configure_logging
from chat_session_toolkit.errors import (
    MalformedTurnError,
    RemoteReadError,
    RemoteWriteError,
    SessionClosedError,
    SessionError,
)
from chat_session_toolkit.remote_log import InMemoryRemoteLogClient, Owner, RemoteLogClient, Turn, TurnInsert
from chat_session_toolkit.session import (
    ChatMessage,
    ConversationDeleted,
    ConversationSessionManager,
    SessionCache,
    SessionEvents,
    TurnCommitted,
)

__all__ = [
    "ChatMessage",
    "ConversationDeleted",
    "ConversationSessionManager",
    "ConversationSummary",
    "InMemoryRemoteLogClient",
    "MalformedTurnError",
    "Owner",
    "RemoteLogClient",
    "RemoteReadError",
    "RemoteWriteError",
    "SessionCache",
    "SessionClosedError",
    "SessionError",
    "SessionEvents",
    "SessionSettings",
    "Turn",
    "TurnCommitted",
    "TurnInsert",
    "configure_logging",
    "summarize",
    "truncate",
]
