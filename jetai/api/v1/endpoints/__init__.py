"""API v1 endpoints."""

from jetai.api.v1.endpoints import chat, diagnostics, health

__all__ = ["chat", "diagnostics", "health"]
