"""Emergency size guard for conversation stores."""

from loguru import logger

from ask.session.estimator import estimate_analysis_tokens
from ask.session.pruner import Pruner, PruningLimits
from ask.session.store import ConversationStore


class EmergencyGuard:
    """
    Last-resort size check, independent of the normal pruning policy.

    When the store is over the emergency ceilings it first drops a bloated
    analysis snapshot, then falls back to hard pruning if that was not
    enough. It never asks the model for help.
    """

    def __init__(self, store: ConversationStore, limits: PruningLimits | None = None):
        self.store = store
        self.limits = limits or PruningLimits()

    def is_triggered(self) -> bool:
        """True when tokens or message count exceed the emergency ceilings."""
        return (
            self.store.estimate_tokens() > self.limits.emergency_max_tokens
            or len(self.store.messages) > self.limits.emergency_max_messages
        )

    def check(self) -> bool:
        """
        Shrink the store if it is over the emergency ceilings.

        Returns:
            True if anything was discarded.
        """
        if not self.is_triggered():
            return False

        tokens = self.store.estimate_tokens()
        logger.warning(
            f"Context exceeds emergency limits ({len(self.store.messages)} messages, {tokens} tokens)"
        )

        changed = False
        analysis_tokens = estimate_analysis_tokens(self.store.analysis_cache)
        if self.store.analysis_cache is not None and analysis_tokens > tokens / 2:
            self.store.clear_analysis()
            changed = True
            logger.warning(
                f"Discarded analysis cache ({analysis_tokens} tokens); "
                f"context now {self.store.estimate_tokens()} tokens"
            )

        if self.is_triggered():
            if Pruner(self.store, limits=self.limits).prune_hard():
                changed = True
            logger.warning(
                f"Emergency pruning left {len(self.store.messages)} messages "
                f"({self.store.estimate_tokens()} tokens)"
            )

        return changed
