"""Agent loop: runs one query against a directory's conversation context."""

from loguru import logger

from ask.agent.analyzer import DirectoryAnalyzer
from ask.agent.context import ContextBuilder
from ask.errors import ProviderCallError
from ask.providers.base import LLMProvider
from ask.session.emergency import EmergencyGuard
from ask.session.manager import StoreManager
from ask.session.pruner import Pruner, PruningLimits
from ask.session.store import ConversationStore

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class AgentLoop:
    """
    The per-query control loop.

    It:
    1. Runs the emergency guard
    2. Appends the user message
    3. Builds context (fresh system prompt + history)
    4. Calls the LLM
    5. Appends the reply, guards and prunes again
    6. Persists the store

    The loop owns its store for the duration of one invocation.
    """

    def __init__(
        self,
        store: ConversationStore,
        store_manager: StoreManager,
        provider: LLMProvider,
        os_name: str,
        model: str | None = None,
        limits: PruningLimits | None = None,
        prompt_caching: bool = False,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ):
        self.store = store
        self.store_manager = store_manager
        self.provider = provider
        self.model = model or provider.get_default_model()
        self.limits = limits or PruningLimits()
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.context = ContextBuilder(store.directory, os_name, prompt_caching=prompt_caching)

    def _pruner(self) -> Pruner:
        return Pruner(self.store, provider=self.provider, limits=self.limits, model=self.model)

    def _run_emergency_guard(self) -> None:
        try:
            EmergencyGuard(self.store, self.limits).check()
        except Exception as e:
            logger.warning(f"Emergency pruning failed: {e}")

    async def _check_and_prune(self) -> None:
        pruner = self._pruner()
        needed, reason = pruner.should_prune()
        if not needed:
            return

        logger.info(f"Context pruning triggered: {reason}")
        try:
            await pruner.prune()
        except Exception as e:
            logger.warning(f"Context pruning failed: {e}")
            return
        logger.info(
            f"Context pruned: {len(self.store.messages)} messages remain "
            f"({self.store.estimate_tokens()} tokens estimated)"
        )

    async def query(self, text: str) -> str:
        """
        Send a query with the directory's conversation context.

        Args:
            text: The user's question.

        Returns:
            The assistant's reply.

        Raises:
            ProviderCallError: the LLM call failed; nothing was saved.
            PersistenceError: the exchange could not be saved.
        """
        self._run_emergency_guard()

        user_msg = self.store.add_message("user", text)
        messages = self.context.build_messages(self.store.messages, self.store.analysis_cache)

        try:
            response = await self.provider.chat(
                messages=messages,
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except ProviderCallError:
            if self.store.messages and self.store.messages[-1] is user_msg:
                self.store.messages.pop()
                self.store.refresh_metadata()
            raise

        self.store.add_message("assistant", response.content)

        self._run_emergency_guard()
        await self._check_and_prune()

        self.store_manager.save(self.store)
        return response.content

    def reset(self) -> None:
        """Clear the conversation (prune count is kept) and save."""
        self.store.reset()
        self.store_manager.save(self.store)

    def analyze(self) -> None:
        """Analyze the directory, cache the result in the store and save."""
        snapshot = DirectoryAnalyzer(self.store.directory).analyze()
        self.store.set_analysis(snapshot)
        self.store_manager.save(self.store)

    def info(self) -> str:
        """Human-readable summary of the current context."""
        meta = self.store.metadata
        lines = [
            f"Context for {self.store.directory}",
            f"Messages: {meta.total_messages}",
            f"Estimated tokens: {meta.total_tokens_estimate}",
            f"Prune count: {meta.prune_count}",
        ]
        if self.store.last_analysis_at is not None:
            lines.append(f"Last analysis: {self.store.last_analysis_at.strftime(TIME_FORMAT)}")
        lines.append(f"Last updated: {self.store.updated_at.strftime(TIME_FORMAT)}")

        needed, reason = self._pruner().should_prune()
        if needed:
            lines.append("")
            lines.append(f"Pruning will be triggered soon: {reason}")

        return "\n".join(lines) + "\n"
