"""
Error taxonomy for the session toolkit.

Remote failures are wrapped at the manager boundary into 'RemoteWriteError' or
'RemoteReadError' (the original exception is kept as '__cause__') and surfaced
through the manager's 'error' field instead of being raised to the UI.
'MalformedTurnError' and 'SessionClosedError' signal programming errors and are
raised normally.
"""


class SessionError(Exception):
    """Base class for every error raised by the toolkit."""


class RemoteWriteError(SessionError):
    """An insert or delete against the remote chat log failed."""


class RemoteReadError(SessionError):
    """A select against the remote chat log failed."""


class MalformedTurnError(SessionError):
    """A turn handed to the aggregator is missing a required field."""


class SessionClosedError(SessionError):
    """An operation was invoked on a session after 'close()'."""
