"""Error taxonomy shared by the relay and the client orchestrator.

ValidationError     malformed/incomplete client request        → HTTP 400
UpstreamError       the execution provider rejected the call   → HTTP 502
InternalError       relay-side transport / parsing failure     → HTTP 500
InitializationError a widget library failed to construct       → logged, widget aborted

Nothing in DevRate retries automatically: a failed run needs an explicit re-run.
"""

from __future__ import annotations


class DevRateError(Exception):
    """Base class for all DevRate errors."""

    status_code: int = 500
    public_message: str = "Internal server error while executing code."

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(DevRateError):
    status_code = 400
    public_message = "Missing code or language in request."


class UpstreamError(DevRateError):
    """JDoodle answered with a non-success status.

    Carries the upstream status and raw body so the caller can show
    provider-side failure context.
    """

    status_code = 502
    public_message = "Compiler Service Authentication or API Error."

    def __init__(self, upstream_status: int, upstream_body: str) -> None:
        super().__init__(self.public_message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body

    @property
    def detail(self) -> str:
        return f"JDoodle returned status {self.upstream_status}"


class InternalError(DevRateError):
    """Transport or parsing failure. ``str(self)`` is safe to show; the cause is not."""

    status_code = 500


class InitializationError(DevRateError):
    """A widget library was missing or its construction failed."""

    def __init__(self, widget: str, message: str) -> None:
        super().__init__(f"{widget}: {message}")
        self.widget = widget
