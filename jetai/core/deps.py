"""FastAPI dependencies.

This module provides injectable dependencies for:
- The shared chat orchestrator built at startup
- Operator (admin token) checks for diagnostics
"""

import hmac
from typing import Annotated

from fastapi import Depends, Header, Request

from jetai.core.config import settings
from jetai.core.exceptions import (
    DiagnosticsDisabledError,
    OperatorAccessError,
    ServiceNotReadyError,
)
from jetai.domains.chat.services.orchestrator import ChatOrchestrator


def get_orchestrator(request: Request) -> ChatOrchestrator:
    """Orchestrator stored on app.state by the lifespan handler."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise ServiceNotReadyError()
    return orchestrator


def _token_matches(token: str | None) -> bool:
    expected = settings.ADMIN_API_TOKEN
    if not expected or not token:
        return False
    return hmac.compare_digest(token.encode(), expected.encode())


async def is_operator(
    x_admin_token: Annotated[str | None, Header()] = None,
) -> bool:
    """True when the request carries the configured admin token."""
    return _token_matches(x_admin_token)


async def require_operator(
    x_admin_token: Annotated[str | None, Header()] = None,
) -> None:
    """Guard for diagnostics routes."""
    if not settings.ADMIN_API_TOKEN:
        raise DiagnosticsDisabledError()
    if not _token_matches(x_admin_token):
        raise OperatorAccessError()


# Type aliases for cleaner endpoint signatures
Orchestrator = Annotated[ChatOrchestrator, Depends(get_orchestrator)]
Operator = Annotated[bool, Depends(is_operator)]
