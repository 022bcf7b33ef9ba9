"""Agent core: query loop, prompt building and directory analysis."""

from ask.agent.analyzer import DirectoryAnalyzer, GitignoreParser
from ask.agent.context import ContextBuilder
from ask.agent.loop import AgentLoop

__all__ = ["AgentLoop", "ContextBuilder", "DirectoryAnalyzer", "GitignoreParser"]
