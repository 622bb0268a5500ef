"""Operator diagnostics: fallback metrics and credential assignments."""

from fastapi import APIRouter, Depends

from jetai.core.deps import Orchestrator, require_operator

router = APIRouter(dependencies=[Depends(require_operator)])


@router.get("/metrics")
async def get_metrics(orchestrator: Orchestrator) -> dict:
    """Primary/fallback/error counters per category plus active alerts."""
    alerts = orchestrator.metrics.check_alerts()
    return {
        "apis": orchestrator.metrics.snapshot(),
        "alerts": [alert.model_dump(mode="json") for alert in alerts],
    }


@router.get("/services")
async def get_service_assignments(orchestrator: Orchestrator) -> dict:
    """Which credential group each initialized service is using."""
    credentials = orchestrator.credentials
    return {
        "assignments": credentials.assignment_summary(),
        "status": {
            name: status.model_dump() for name, status in credentials.services_status().items()
        },
        "report": credentials.render_assignment_summary(orchestrator.settings.AGENT_NAME),
    }
