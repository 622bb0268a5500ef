"""Core module - Settings, logging and shared utilities.

Note: Dependencies (deps.py) are imported lazily to avoid circular
imports. Import them directly where needed:

    from jetai.core.deps import get_orchestrator, require_operator
    from jetai.core.exceptions import OperatorAccessError
"""

from jetai.core.config import settings

__all__ = [
    "settings",
]
