from __future__ import annotations

from typing import Any, Dict, List, Optional


class QueryValidationError(ValueError):
    """Raised for malformed caller input, always before any network call."""


class InvalidTimeValue(QueryValidationError):
    pass


class InvalidTimeRange(QueryValidationError):
    pass


class InvalidPageParameter(QueryValidationError):
    pass


class InvalidEventError(QueryValidationError):
    pass


class MissingAPIKeyError(RuntimeError):
    pass


class TransportError(RuntimeError):
    """Any failure talking to the remote telemetry service."""


class TelemetryAPIError(TransportError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EventRejectedError(TelemetryAPIError):
    def __init__(self, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        self.errors = errors or []
        details = "; ".join(
            f"{item.get('code', 'rejected')}: {item.get('message', '')}" for item in self.errors
        )
        message = "Event rejected"
        if details:
            message = f"{message} ({details})"
        super().__init__(message)
