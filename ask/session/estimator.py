"""Size estimation for conversation context.

These are coarse character-ratio estimates, not a tokenizer. The analysis
snapshot is counted as denser content (3.5 chars per unit) than messages
(4 chars per unit); the pruning thresholds are tuned to that split.
"""

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from ask.session.store import AnalysisSnapshot, Message


CHARS_PER_TOKEN = 4
ANALYSIS_CHARS_PER_TOKEN = 3.5
CONFIG_FILE_TOKENS = 10  # Fixed overhead per detected config file


def estimate_message_tokens(content: str) -> int:
    """Estimate tokens in a single message body."""
    return len(content) // CHARS_PER_TOKEN


def estimate_messages_tokens(messages: Iterable["Message"]) -> int:
    """Estimate total tokens across all messages."""
    return sum(estimate_message_tokens(msg.content) for msg in messages)


def estimate_analysis_tokens(snapshot: "AnalysisSnapshot | None") -> int:
    """Estimate tokens used by a cached directory analysis."""
    if snapshot is None:
        return 0
    chars = len(snapshot.file_tree) + len(snapshot.readme_content)
    return int(chars / ANALYSIS_CHARS_PER_TOKEN) + CONFIG_FILE_TOKENS * len(snapshot.primary_configs)


def estimate_tokens(messages: Iterable["Message"], snapshot: "AnalysisSnapshot | None" = None) -> int:
    """Estimate the whole context: messages plus the analysis snapshot."""
    return estimate_messages_tokens(messages) + estimate_analysis_tokens(snapshot)
