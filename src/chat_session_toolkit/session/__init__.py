from chat_session_toolkit.session.cache import ChatMessage, SessionCache
from chat_session_toolkit.session.events import ConversationDeleted, SessionEvent, SessionEvents, TurnCommitted
from chat_session_toolkit.session.manager import ConversationSessionManager

__all__ = [
    "ChatMessage",
    "ConversationDeleted",
    "ConversationSessionManager",
    "SessionCache",
    "SessionEvent",
    "SessionEvents",
    "TurnCommitted",
]
