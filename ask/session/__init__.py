"""Conversation context storage and pruning."""

from ask.session.emergency import EmergencyGuard
from ask.session.manager import StoreManager
from ask.session.pruner import Pruner, PruningLimits
from ask.session.store import AnalysisSnapshot, ConversationStore, Message, Metadata

__all__ = [
    "AnalysisSnapshot",
    "ConversationStore",
    "EmergencyGuard",
    "Message",
    "Metadata",
    "Pruner",
    "PruningLimits",
    "StoreManager",
]
