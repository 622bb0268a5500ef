"""Chat domain services."""

from jetai.domains.chat.services.model_chain import ModelFallbackChain
from jetai.domains.chat.services.orchestrator import ChatOrchestrator

__all__ = ["ChatOrchestrator", "ModelFallbackChain"]
