"""Conversation store: the persistent context for one directory."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ask.session.estimator import estimate_tokens
from ask.utils.helpers import truncate_text

STORE_VERSION = "1"
VALID_ROLES = ("system", "user", "assistant")

MAX_MESSAGE_LENGTH = 20000
TRUNCATION_NOTICE = f"\n\n[Content truncated - message exceeded {MAX_MESSAGE_LENGTH} characters]"


def _parse_time(value: Any) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


@dataclass(frozen=True)
class Message:
    """A single conversation turn."""

    role: str  # system, user, assistant
    content: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(
            role=data["role"],
            content=data.get("content", ""),
            timestamp=_parse_time(data.get("timestamp")) or datetime.now(),
        )


@dataclass
class AnalysisSnapshot:
    """Cached directory analysis results."""

    file_tree: str
    readme_content: str = ""
    primary_configs: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"file_tree": self.file_tree}
        if self.readme_content:
            data["readme_content"] = self.readme_content
        data["primary_configs"] = list(self.primary_configs)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisSnapshot":
        return cls(
            file_tree=data.get("file_tree", ""),
            readme_content=data.get("readme_content", ""),
            primary_configs=list(data.get("primary_configs") or []),
        )


@dataclass
class Metadata:
    """Running statistics about the conversation."""

    total_messages: int = 0
    total_tokens_estimate: int = 0
    prune_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total_messages": self.total_messages,
            "total_tokens_estimate": self.total_tokens_estimate,
            "prune_count": self.prune_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Metadata":
        return cls(
            total_messages=int(data.get("total_messages", 0)),
            total_tokens_estimate=int(data.get("total_tokens_estimate", 0)),
            prune_count=int(data.get("prune_count", 0)),
        )


@dataclass
class ConversationStore:
    """
    The conversation context for one directory.

    Messages are kept in insertion order; pruning relies on position to
    tell old exchanges from recent ones. Every mutating method refreshes
    ``metadata`` so it always matches the messages and analysis snapshot.
    """

    directory: str  # Absolute path; hashed for the file name
    messages: list[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    last_analysis_at: datetime | None = None
    analysis_cache: AnalysisSnapshot | None = None
    metadata: Metadata = field(default_factory=Metadata)
    version: str = STORE_VERSION

    def add_message(self, role: str, content: str) -> Message:
        """Append a message, truncating oversized content."""
        if role not in VALID_ROLES:
            raise ValueError(f"Invalid message role: {role!r}")
        msg = Message(role=role, content=truncate_text(content, MAX_MESSAGE_LENGTH, TRUNCATION_NOTICE))
        self.messages.append(msg)
        self.refresh_metadata()
        return msg

    def estimate_tokens(self) -> int:
        """Estimate the size of messages plus the analysis snapshot."""
        return estimate_tokens(self.messages, self.analysis_cache)

    def refresh_metadata(self) -> None:
        """Recompute message count and size estimate."""
        self.metadata.total_messages = len(self.messages)
        self.metadata.total_tokens_estimate = self.estimate_tokens()

    def set_analysis(self, snapshot: AnalysisSnapshot, when: datetime | None = None) -> None:
        """Cache a directory analysis."""
        self.analysis_cache = snapshot
        self.last_analysis_at = when or datetime.now()
        self.refresh_metadata()

    def clear_analysis(self) -> None:
        """Drop the analysis snapshot and its refresh marker."""
        self.analysis_cache = None
        self.last_analysis_at = None
        self.refresh_metadata()

    def reset(self) -> None:
        """Clear messages and analysis; the prune count survives."""
        self.messages = []
        self.analysis_cache = None
        self.last_analysis_at = None
        self.metadata = Metadata(prune_count=self.metadata.prune_count)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "directory": self.directory,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        if self.last_analysis_at is not None:
            data["last_analysis_at"] = self.last_analysis_at.isoformat()
        if self.analysis_cache is not None:
            data["analysis_cache"] = self.analysis_cache.to_dict()
        data["messages"] = [m.to_dict() for m in self.messages]
        data["metadata"] = self.metadata.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConversationStore":
        """Build a store from its JSON form; unknown fields are ignored."""
        analysis = data.get("analysis_cache")
        return cls(
            directory=data["directory"],
            messages=[Message.from_dict(m) for m in data.get("messages") or []],
            created_at=_parse_time(data.get("created_at")) or datetime.now(),
            updated_at=_parse_time(data.get("updated_at")) or datetime.now(),
            last_analysis_at=_parse_time(data.get("last_analysis_at")),
            analysis_cache=AnalysisSnapshot.from_dict(analysis) if analysis else None,
            metadata=Metadata.from_dict(data.get("metadata") or {}),
            version=str(data.get("version", STORE_VERSION)),
        )
