"""HTTP exceptions raised by the API layer."""

from fastapi import HTTPException, status


class OperatorAccessError(HTTPException):
    """Raised when a diagnostics route is called without a valid admin token."""

    def __init__(self, detail: str = "Operator access required") -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


class DiagnosticsDisabledError(HTTPException):
    """Raised when no admin token is configured, so diagnostics are off."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Diagnostics are disabled",
        )


class ServiceNotReadyError(HTTPException):
    """Raised when the orchestrator has not been built yet."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
