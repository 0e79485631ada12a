from chat_session_toolkit.aggregation.summarizer import ConversationSummary, summarize, truncate

__all__ = ["ConversationSummary", "summarize", "truncate"]
