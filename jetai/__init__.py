"""JetAI - resilience orchestration backend for a conversational travel assistant."""

__version__ = "0.1.0"
