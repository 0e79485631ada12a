"""
Conversation session manager (Facade).

'ConversationSessionManager' is the single entry point the UI talks to. It owns
one owner-scoped session and coordinates the remote chat log, the conversation
aggregator and the session cache behind five operations:

    'create_new_conversation' - mint a conversation id and make it current (local only).
    'log_message'             - persist a prompt/response turn, then show it if still current.
    'list_conversations'      - recompute the summary list from the remote rows.
    'load_conversation'       - open a conversation and fetch its turns.
    'delete_conversation'     - remove a conversation remotely and repair the cursor.

Remote failures never propagate out of these operations. They are converted into
'RemoteWriteError' / 'RemoteReadError', exposed through 'error' and
'last_exception', and leave the cached state as it was. The remote write is the
commit point: nothing is shown before it succeeds.

Overlapping calls are not serialised. Each asynchronous result is installed only
if the request token it captured is still the live one: the cache token for
buffer fetches, the list token for summary refreshes ("last call issued wins").
"""

from loguru import logger

from chat_session_toolkit.aggregation.summarizer import ConversationSummary, summarize
from chat_session_toolkit.config import SessionSettings
from chat_session_toolkit.errors import (
    MalformedTurnError,
    RemoteReadError,
    RemoteWriteError,
    SessionClosedError,
    SessionError,
)
from chat_session_toolkit.remote_log.base import Owner, RemoteLogClient, Turn, TurnInsert
from chat_session_toolkit.session.cache import ChatMessage, SessionCache
from chat_session_toolkit.session.events import ConversationDeleted, SessionEvents, TurnCommitted
from chat_session_toolkit.utils.database import generate_uid

SAVE_MESSAGE_FAILED = "Failed to save chat message"
LOAD_CONVERSATIONS_FAILED = "Failed to load conversations"
LOAD_CONVERSATION_FAILED = "Failed to load conversation"
DELETE_CONVERSATION_FAILED = "Failed to delete conversation"


class ConversationSessionManager:
    """
    Owner-scoped conversation session.

    Attributes:
        remote_log: Client for the remote table of turns.
        settings: Truncation limits and grouping defaults passed to the aggregator.
        events: Bus on which committed writes and deletes are published. The
            manager subscribes its own summary refresh to it.
    """

    def __init__(
        self,
        remote_log: RemoteLogClient,
        owner: Owner,
        settings: SessionSettings | None = None,
        events: SessionEvents | None = None,
    ):
        self.remote_log = remote_log
        self.settings = settings or SessionSettings()
        self.events = events or SessionEvents()
        self._owner = owner
        self._cache = SessionCache()
        self._conversations: list[ConversationSummary] = []
        self._list_token = 0
        self._in_flight = 0
        self._error: str | None = None
        self._last_exception: SessionError | None = None
        self._started = False
        self._closed = False

        self.events.subscribe(TurnCommitted, self._on_turn_committed)
        self.events.subscribe(ConversationDeleted, self._on_conversation_deleted)

    @property
    def owner(self) -> Owner:
        return self._owner

    @property
    def conversations(self) -> list[ConversationSummary]:
        return list(self._conversations)

    @property
    def current_conversation_id(self) -> str | None:
        return self._cache.current_conversation_id

    @property
    def current_messages(self) -> tuple[ChatMessage, ...]:
        return self._cache.messages

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def last_exception(self) -> SessionError | None:
        return self._last_exception

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Initialise the session on login: make sure a cursor exists and fetch the summary list."""
        self._ensure_open()
        if self._started:
            return
        self._started = True
        if self._cache.current_conversation_id is None:
            self.create_new_conversation()
        await self.list_conversations()

    async def close(self) -> None:
        """Tear the session down on logout. In-flight results are discarded when they resolve."""
        if self._closed:
            return
        self._closed = True
        self.events.unsubscribe(TurnCommitted, self._on_turn_committed)
        self.events.unsubscribe(ConversationDeleted, self._on_conversation_deleted)
        self._cache.clear(keep_cursor=False)
        self._list_token += 1
        self._conversations = []
        logger.info(f"Closed session of owner {self._owner.id}")

    def clear_error(self) -> None:
        self._error = None
        self._last_exception = None

    def create_new_conversation(self) -> str:
        self._ensure_open()
        conversation_id = generate_uid()
        self._cache.set_current(conversation_id, [])
        logger.debug(f"Started conversation {conversation_id}")
        return conversation_id

    def start_new_conversation(self) -> str:
        return self.create_new_conversation()

    async def log_message(self, prompt: str, response: str, conversation_id: str | None = None) -> str | None:
        """
        Persist a prompt/response turn and return the conversation id it was written under.

        The target is 'conversation_id', else the current cursor, else a freshly
        minted conversation. Once the insert succeeds the turn is appended to the
        visible buffer if the target is still the cursor at that moment, and a
        'TurnCommitted' event triggers a summary refresh. Returns None if the
        insert fails; the cache is left untouched in that case.
        """
        self._ensure_open()
        target = conversation_id or self._cache.current_conversation_id or self.create_new_conversation()

        try:
            turn = await self.remote_log.insert(
                TurnInsert(
                    owner_id=self._owner.id,
                    owner_email=self._owner.email,
                    owner_name=self._owner.name,
                    prompt=prompt,
                    response=response,
                    conversation_id=target,
                    session_id=self._owner.id,
                )
            )
        except Exception as exc:
            self._fail(RemoteWriteError(SAVE_MESSAGE_FAILED), exc)
            return None

        logger.info(f"Committed turn {turn.id} to conversation {target}")
        if not self._cache.append_if_current(target, self._to_message(turn, target)):
            logger.debug(f"Turn {turn.id} not shown, conversation {target} is no longer open")

        await self.events.publish(TurnCommitted(owner_id=self._owner.id, conversation_id=target, turn=turn))
        return target

    async def list_conversations(self) -> list[ConversationSummary]:
        """
        Recompute the conversation summaries from every turn of the owner.

        On failure the previous list is kept and returned. A response that
        resolves after a newer call was issued is dropped.
        """
        self._ensure_open()
        self._list_token += 1
        token = self._list_token

        self._in_flight += 1
        try:
            turns = await self.remote_log.select_by_owner(self._owner.id)
        except Exception as exc:
            if token == self._list_token:
                self._fail(RemoteReadError(LOAD_CONVERSATIONS_FAILED), exc)
            return list(self._conversations)
        finally:
            self._in_flight -= 1

        if token != self._list_token:
            logger.debug(f"Discarding stale conversation list (request {token}, live {self._list_token})")
            return list(self._conversations)

        self._conversations = summarize(turns, self.settings)
        return list(self._conversations)

    async def load_conversation(self, conversation_id: str) -> None:
        """
        Open 'conversation_id' and fetch its turns into the buffer.

        Reopening the current conversation while its buffer is non-empty is a
        cache hit and does not fetch. Otherwise the cursor moves immediately with
        an empty buffer, and the fetched turns are installed only if no other
        cursor change happened in the meantime.
        """
        self._ensure_open()
        if conversation_id == self._cache.current_conversation_id and self._cache.messages:
            logger.debug(f"Conversation {conversation_id} already loaded")
            return

        token = self._cache.set_current(conversation_id, [])
        self._in_flight += 1
        try:
            turns = await self.remote_log.select_by_owner_and_conversation(self._owner.id, conversation_id)
        except Exception as exc:
            if self._cache.is_current(token):
                self._fail(RemoteReadError(LOAD_CONVERSATION_FAILED), exc)
            return
        finally:
            self._in_flight -= 1

        if not self._cache.is_current(token):
            logger.debug(f"Discarding stale fetch of conversation {conversation_id}")
            return

        fetched = [self._to_message(turn, conversation_id) for turn in turns]
        # turns committed while the fetch was in flight may be missing from it
        known = {message.id for message in fetched}
        committed_meanwhile = [message for message in self._cache.messages if message.id not in known]
        self._cache.install(token, fetched + committed_meanwhile)
        logger.debug(f"Loaded {len(fetched)} turns of conversation {conversation_id}")

    async def delete_conversation(self, conversation_id: str) -> bool:
        """
        Delete every turn of 'conversation_id'.

        If it is the open conversation a new empty one replaces it. The summary
        list is refreshed through a 'ConversationDeleted' event. Returns False
        if the remote delete failed.
        """
        self._ensure_open()
        try:
            await self.remote_log.delete_by_owner_and_conversation(self._owner.id, conversation_id)
        except Exception as exc:
            self._fail(RemoteWriteError(DELETE_CONVERSATION_FAILED), exc)
            return False

        logger.info(f"Deleted conversation {conversation_id}")
        if conversation_id == self._cache.current_conversation_id:
            self.create_new_conversation()

        await self.events.publish(ConversationDeleted(owner_id=self._owner.id, conversation_id=conversation_id))
        return True

    async def _on_turn_committed(self, event: TurnCommitted) -> None:
        if event.owner_id == self._owner.id:
            await self.list_conversations()

    async def _on_conversation_deleted(self, event: ConversationDeleted) -> None:
        if event.owner_id == self._owner.id:
            await self.list_conversations()

    def _to_message(self, turn: Turn, conversation_id: str) -> ChatMessage:
        if turn.created_at is None:
            raise MalformedTurnError(f"Turn {turn.id} has no created_at timestamp")
        return ChatMessage.from_turn(turn, conversation_id)

    def _fail(self, error: SessionError, cause: Exception) -> None:
        error.__cause__ = cause
        self._error = str(error)
        self._last_exception = error
        logger.error(f"{error}: {cause!r}")

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"Session of owner {self._owner.id} is closed")
