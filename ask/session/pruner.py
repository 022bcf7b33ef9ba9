"""Context pruning for keeping conversation history within budget."""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from ask.errors import PruningError, PruningResponseError
from ask.providers.base import LLMProvider
from ask.session.store import ConversationStore, Message

PRESERVE_RECENT = 4  # Most recent messages (two exchanges) always kept
MIN_MESSAGES_FOR_AI = 10
SUMMARY_CONTENT_LIMIT = 200
PRESERVE_KEYWORDS = ("analysis", "file tree", "readme", "structure", "architecture")


@dataclass
class PruningLimits:
    """Thresholds for context pruning."""

    # Hard limits: always prune, deterministically
    max_messages: int = 100  # 50 exchanges
    max_tokens: int = 25000
    max_age_days: int = 30

    # Soft limits: prune, AI-driven selection allowed
    soft_max_messages: int = 40  # 20 exchanges
    soft_max_tokens: int = 15000

    # Target after pruning
    target_messages: int = 24  # 12 exchanges
    target_tokens: int = 10000

    # Emergency ceilings, checked by EmergencyGuard (1.5x hard)
    emergency_max_messages: int = 150
    emergency_max_tokens: int = 37500


PRUNING_PROMPT = """You are helping manage a conversation context that has grown too large.

CONTEXT PRUNING REQUIRED:
Reason: {reason}

Current state:
- Total messages: {total_messages}
- Estimated tokens: {tokens}
- Target: Reduce to ~{target_tokens} tokens ({target_messages} messages)

{summary}
Your task: Analyze the conversation and identify exchanges (user question + assistant response pairs) that are:
1. Least relevant to ongoing work
2. One-off questions that were fully resolved
3. Outdated information that's been superseded
4. Redundant or repetitive

IMPORTANT RULES:
- Always preserve the last {preserve} messages (most recent {preserve_exchanges} exchanges)
- Preserve messages containing code examples (with triple backticks)
- Preserve messages that reference project structure or analysis results
- Return ONLY a JSON array of message indices to remove

Example response format:
[0, 1, 4, 5, 8, 9]

Respond with ONLY the JSON array, no other text."""


class Pruner:
    """
    Decides when a conversation store needs pruning and shrinks it.

    Two strategies exist. The adaptive one asks the model which messages
    can go; it only runs between the soft and hard limits. The hard one
    drops the oldest messages down to the target and is the fallback for
    every adaptive failure.
    """

    def __init__(
        self,
        store: ConversationStore,
        provider: LLMProvider | None = None,
        limits: PruningLimits | None = None,
        model: str | None = None,
    ):
        self.store = store
        self.provider = provider
        self.limits = limits or PruningLimits()
        self.model = model

    def should_prune(self) -> tuple[bool, str]:
        """Check whether pruning is needed; returns (needed, reason)."""
        count = len(self.store.messages)
        if count >= self.limits.max_messages:
            return True, f"hard limit: messages ({count} >= {self.limits.max_messages})"

        tokens = self.store.estimate_tokens()
        if tokens >= self.limits.max_tokens:
            return True, f"hard limit: tokens ({tokens} >= {self.limits.max_tokens})"

        if self.store.messages:
            age = datetime.now() - self.store.messages[0].timestamp
            if age > timedelta(days=self.limits.max_age_days):
                days = round(age.total_seconds() / 86400)
                return True, f"hard limit: age ({days} days >= {self.limits.max_age_days} days)"

        if count >= self.limits.soft_max_messages:
            return True, f"soft limit: messages ({count} >= {self.limits.soft_max_messages})"

        if tokens >= self.limits.soft_max_tokens:
            return True, f"soft limit: tokens ({tokens} >= {self.limits.soft_max_tokens})"

        return False, ""

    async def prune(self) -> bool:
        """
        Prune if needed, using AI-driven selection when possible.

        Returns:
            True if the store was changed.
        """
        needed, reason = self.should_prune()
        if not needed:
            return False

        if self.can_use_ai_pruning():
            try:
                return await self.prune_with_ai(reason)
            except Exception as e:
                logger.warning(f"AI pruning failed, falling back to hard pruning: {e}")

        return self.prune_hard()

    def can_use_ai_pruning(self) -> bool:
        """AI pruning needs a provider, enough messages, and no hard limit blown."""
        if self.provider is None:
            return False
        count = len(self.store.messages)
        if count < MIN_MESSAGES_FOR_AI:
            return False
        if count >= self.limits.max_messages:
            return False
        return self.store.estimate_tokens() < self.limits.max_tokens

    async def prune_with_ai(self, reason: str) -> bool:
        """Ask the model which messages to drop and remove them."""
        if self.provider is None:
            raise PruningError("no provider available for AI pruning")

        snapshot = list(self.store.messages)
        prompt = self.build_pruning_prompt(reason, snapshot)

        response = await self.provider.chat(
            messages=[{"role": "system", "content": prompt}],
            model=self.model,
            temperature=0.0,
        )
        indices = self.parse_pruning_response(response.content)
        if not indices:
            logger.debug("AI pruning selected nothing to remove")
            return False

        current = self.store.messages
        if current[: len(snapshot)] != snapshot:
            raise PruningError("conversation changed while waiting for pruning response")

        before = len(current)
        kept = remove_by_indices(snapshot, indices) + current[len(snapshot):]
        if len(kept) == before:
            logger.debug("AI pruning indices matched no messages")
            return False

        self.store.messages = kept
        self.store.metadata.prune_count += 1
        self.store.refresh_metadata()
        logger.info(f"AI pruning removed {before - len(kept)} messages")
        return True

    def build_pruning_prompt(self, reason: str, messages: list[Message] | None = None) -> str:
        """Build the prompt asking the model for indices to remove."""
        messages = self.store.messages if messages is None else messages

        lines = ["CONVERSATION MESSAGES:", ""]
        for i, msg in enumerate(messages):
            if msg.role == "system":
                continue
            content = msg.content
            if len(content) > SUMMARY_CONTENT_LIMIT:
                content = content[:SUMMARY_CONTENT_LIMIT] + "..."
            lines.append(f"[{i}] {msg.role}: {content}")
            lines.append("")

        return PRUNING_PROMPT.format(
            reason=reason,
            total_messages=len(messages),
            tokens=self.store.estimate_tokens(),
            target_tokens=self.limits.target_tokens,
            target_messages=self.limits.target_messages,
            summary="\n".join(lines),
            preserve=PRESERVE_RECENT,
            preserve_exchanges=PRESERVE_RECENT // 2,
        )

    @staticmethod
    def parse_pruning_response(response: str) -> list[int]:
        """
        Extract message indices from the model's answer.

        Accepts a bare JSON array, optionally inside a ```json fence.

        Raises:
            PruningResponseError: if the answer is not a JSON array of integers.
        """
        text = (response or "").strip()
        if text.startswith("```json"):
            text = text[len("```json"):]
        elif text.startswith("```"):
            text = text[len("```"):]
        if text.endswith("```"):
            text = text[: -len("```")]
        text = text.strip()

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise PruningResponseError(f"failed to parse JSON array: {e}") from e

        if not isinstance(data, list):
            raise PruningResponseError(f"expected a JSON array, got {type(data).__name__}")
        if any(isinstance(v, bool) or not isinstance(v, int) for v in data):
            raise PruningResponseError("pruning indices must be integers")
        return data

    def remove_messages_by_indices(self, indices: list[int]) -> None:
        """Remove messages at the given positions, keeping the rest in order."""
        self.store.messages = remove_by_indices(self.store.messages, indices)

    def prune_hard(self) -> bool:
        """
        Drop the oldest messages down to the target count.

        Leading system messages are kept and never counted as removable, and
        the last PRESERVE_RECENT messages always survive.

        Returns:
            True if messages were removed.
        """
        messages = self.store.messages
        count = len(messages)
        if count <= self.limits.target_messages:
            return False

        start = 0
        while start < count and messages[start].role == "system":
            start += 1

        to_remove = min(count - self.limits.target_messages, count - start - PRESERVE_RECENT)
        if to_remove <= 0:
            return False

        kept = messages[:start] + messages[start + to_remove:]
        if len(kept) == count:
            return False

        self.store.messages = kept
        self.store.metadata.prune_count += 1
        self.store.refresh_metadata()
        logger.info(f"Hard pruning removed {count - len(kept)} messages")
        return True

    def should_preserve(self, msg: Message, index: int) -> bool:
        """Advisory check for messages worth keeping: recent, code, or project structure."""
        if index >= len(self.store.messages) - PRESERVE_RECENT:
            return True
        if "```" in msg.content:
            return True
        content = msg.content.lower()
        return any(keyword in content for keyword in PRESERVE_KEYWORDS)


def remove_by_indices(messages: list[Message], indices: list[int]) -> list[Message]:
    """Return messages without the given positions; unknown positions are ignored."""
    to_remove = set(indices)
    return [msg for i, msg in enumerate(messages) if i not in to_remove]
