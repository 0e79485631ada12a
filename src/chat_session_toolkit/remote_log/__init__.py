from chat_session_toolkit.remote_log.base import Owner, RemoteLogClient, Turn, TurnInsert
from chat_session_toolkit.remote_log.in_memory import InMemoryRemoteLogClient

__all__ = [
    "InMemoryRemoteLogClient",
    "Owner",
    "RemoteLogClient",
    "Turn",
    "TurnInsert",
]
