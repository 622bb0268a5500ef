"""
JetAI Backend - Credential Pool Manager
Rotates among the configured credential groups per service category.

Each category has a fixed try order over the groups. Resolution returns
the first group with a secret; client initialization walks the same
order, building a client per group until one succeeds, and remembers
which group each service ended up on.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from jetai.core.config import Settings, settings as default_settings
from jetai.core.redact import redact_sensitive
from jetai.domains.credentials.categories import ServiceCategory, preferred_groups

logger = logging.getLogger(__name__)

ClientT = TypeVar("ClientT")


# ============ Errors ============


class CredentialError(Exception):
    """Base exception for credential pool errors."""


class NoCredentialAvailable(CredentialError):
    """No credential group has a secret for the category."""

    def __init__(self, category: ServiceCategory | str):
        self.category = ServiceCategory(category)
        super().__init__(f"No credential available for {self.category.value}")


# ============ Models ============


class Credential(BaseModel):
    """A credential group's secret. Never logged."""

    model_config = ConfigDict(frozen=True)

    group_id: int = Field(..., ge=1)
    secret: str = Field(..., repr=False)

    @property
    def label(self) -> str:
        return f"GROUP{self.group_id}"


class ServiceClientStatus(BaseModel):
    """Initialization state of one named service client."""

    initialized: bool = False
    assigned_group: int | None = None
    last_error: str | None = None


# ============ Manager ============


class CredentialPoolManager:
    """Hands out credentials and builds per-service clients from them."""

    def __init__(
        self,
        groups: Mapping[int, str] | None = None,
        settings: Settings | None = None,
    ):
        if groups is None:
            groups = (settings or default_settings).credential_group_secrets
        self._credentials: dict[int, Credential] = {
            group_id: Credential(group_id=group_id, secret=secret)
            for group_id, secret in sorted(groups.items())
        }
        self._status: dict[str, ServiceClientStatus] = {}
        self._clients: dict[str, Any] = {}

    def _secret_for(self, group_id: int) -> Credential | None:
        credential = self._credentials.get(group_id)
        if credential is None or not credential.secret:
            return None
        return credential

    def resolve_credential(self, category: ServiceCategory | str) -> Credential:
        """Return the first preferred group with a secret.

        Falls back to any other configured group before giving up.
        """
        category = ServiceCategory(category)
        preferred = preferred_groups(category)

        for group_id in preferred:
            credential = self._secret_for(group_id)
            if credential:
                return credential

        for group_id in self._credentials:
            if group_id in preferred:
                continue
            credential = self._secret_for(group_id)
            if credential:
                logger.warning(
                    f"No preferred credential for {category.value}, "
                    f"using {credential.label}"
                )
                return credential

        raise NoCredentialAvailable(category)

    def initialize_client(
        self,
        category: ServiceCategory | str,
        service_name: str,
        build_fn: Callable[[str], ClientT],
    ) -> ClientT | None:
        """Build (once) a client for service_name using the category's groups.

        Returns the cached client if the service is already initialized.
        Returns None when every preferred group fails; the failure is
        recorded in the service status.
        """
        existing = self._status.get(service_name)
        if existing and existing.initialized and service_name in self._clients:
            return self._clients[service_name]

        category = ServiceCategory(category)
        status = self._status.setdefault(service_name, ServiceClientStatus())
        attempted = False

        for group_id in preferred_groups(category):
            credential = self._secret_for(group_id)
            if credential is None:
                continue
            attempted = True
            try:
                client = build_fn(credential.secret)
            except Exception as e:
                status.last_error = redact_sensitive(str(e)) or type(e).__name__
                logger.warning(
                    f"{service_name}: {credential.label} failed: {status.last_error}"
                )
                continue

            self._status[service_name] = ServiceClientStatus(
                initialized=True,
                assigned_group=group_id,
                last_error=None,
            )
            self._clients[service_name] = client
            logger.info(f"{service_name} initialized with {credential.label}")
            return client

        if not attempted:
            status.last_error = str(NoCredentialAvailable(category))

        logger.error(
            f"All credential groups failed for {service_name}: {status.last_error}. "
            "Entering fallback mode."
        )
        return None

    def get_service_client(self, service_name: str) -> Any | None:
        """Return the cached client for a service, if initialized."""
        return self._clients.get(service_name)

    def services_status(self) -> dict[str, ServiceClientStatus]:
        """Snapshot of every service that has been initialized or attempted."""
        return {name: status.model_copy() for name, status in self._status.items()}

    def assignment_summary(self) -> dict[str, str]:
        """Per service: the assigned group label, or the failure reason."""
        summary: dict[str, str] = {}
        for name, status in self._status.items():
            if status.initialized and status.assigned_group is not None:
                summary[name] = f"GROUP{status.assigned_group}"
            else:
                summary[name] = f"failed: {status.last_error or 'not initialized'}"
        return summary

    def render_assignment_summary(self, agent_name: str | None = None) -> str:
        """Human-readable assignment report."""
        agent_name = agent_name or default_settings.AGENT_NAME
        lines = [f"{agent_name} service assignments:"]
        for name, assignment in self.assignment_summary().items():
            if assignment.startswith("failed"):
                lines.append(f"  {name}: Failed ({assignment[len('failed: '):]})")
            else:
                lines.append(f"  {name}: {assignment}")
        if len(lines) == 1:
            lines.append("  (no services initialized)")
        return "\n".join(lines)
