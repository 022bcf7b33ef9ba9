"""Context builder for assembling the outbound prompt."""

from typing import Any, Iterable

from ask.session.store import AnalysisSnapshot, Message

CACHE_CONTROL = {"type": "ephemeral"}


class ContextBuilder:
    """
    Builds the message list sent to the model.

    The system prompt is regenerated on every query from the directory, OS
    and optional analysis snapshot. Stored system messages are never
    replayed.
    """

    def __init__(self, directory: str, os_name: str, prompt_caching: bool = False):
        self.directory = directory
        self.os_name = os_name
        self.prompt_caching = prompt_caching

    def build_system_prompt(self, analysis: AnalysisSnapshot | None = None) -> str:
        """Build the system prompt, with the project analysis appended when present."""
        prompt = self._get_identity()
        if analysis is not None:
            prompt += "\n\n" + self._format_analysis(analysis)
        return prompt

    def _get_identity(self) -> str:
        return f"""You are a helpful AI assistant integrated into the 'ask' CLI tool. You help users work with their projects through conversational queries.

CONTEXT:
- This is a stateful conversation; earlier exchanges in this directory are included.
- Current directory: {self.directory}
- The user can run 'ask --analyze <query>' to share the project structure with you.
- If you need more project context, suggest: ask --analyze "your question here"
- Queries with special shell characters should be quoted.

ENVIRONMENT:
- Output is shown in a plain terminal. No markdown formatting; nothing renders it.
- OS: {self.os_name}

RESPONSE STYLE:
- Concise, concrete, actionable answers
- Include code examples when relevant
- Refer back to earlier conversation when relevant

CONTEXT MANAGEMENT:
- The conversation has a limited context window.
- When it grows too long you may be asked which exchanges can be pruned."""

    @staticmethod
    def _format_analysis(analysis: AnalysisSnapshot) -> str:
        parts = ["PROJECT ANALYSIS:", "The following information has been gathered about this project:", ""]
        if analysis.file_tree:
            parts.append(f"FILE TREE:\n{analysis.file_tree}\n")
        if analysis.readme_content:
            parts.append(f"README:\n{analysis.readme_content}\n")
        if analysis.primary_configs:
            parts.append("PRIMARY CONFIGURATION FILES:")
            parts.extend(f"- {name}" for name in analysis.primary_configs)
            parts.append("")
        parts.append("Use this information to provide more accurate and project-specific responses.")
        return "\n".join(parts)

    def build_messages(
        self,
        history: Iterable[Message],
        analysis: AnalysisSnapshot | None = None,
    ) -> list[dict[str, Any]]:
        """
        Build the complete message list for an LLM call.

        Args:
            history: Stored conversation messages, oldest first.
            analysis: Cached directory analysis, if any.

        Returns:
            List of messages including the fresh system prompt.
        """
        system: dict[str, Any] = {"role": "system", "content": self.build_system_prompt(analysis)}
        if self.prompt_caching:
            system["cache_control"] = dict(CACHE_CONTROL)

        messages = [system]
        messages.extend(
            {"role": msg.role, "content": msg.content}
            for msg in history
            if msg.role != "system"
        )
        return messages
