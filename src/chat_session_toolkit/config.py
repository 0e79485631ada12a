"""
Session settings and logging setup.

'SessionSettings' is loaded from the environment: every field can be overridden
with a 'CHAT_SESSION_<FIELD>' variable, e.g. 'CHAT_SESSION_TITLE_MAX_LENGTH=40'.
"""

import sys

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SessionSettings(BaseSettings):
    """
    Tunables of the session manager and the conversation aggregator.

    Attributes:
        title_max_length: Summary titles longer than this are cut and suffixed with 'ellipsis'.
        preview_max_length: Same rule for the last-message preview.
        ellipsis: Suffix appended to truncated strings.
        default_conversation_id: Grouping key for legacy turns stored without a conversation id.
        log_level: Minimum level of the stderr sink installed by 'configure_logging'.
    """

    model_config = SettingsConfigDict(env_prefix="CHAT_SESSION_", extra="ignore")

    title_max_length: int = Field(default=50, gt=0)
    preview_max_length: int = Field(default=100, gt=0)
    ellipsis: str = "..."
    default_conversation_id: str = "default"
    log_level: str = "INFO"


def configure_logging(settings: SessionSettings | None = None) -> None:
    """Replace loguru's default sink with a single stderr sink at 'settings.log_level'."""
    settings = settings or SessionSettings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())
