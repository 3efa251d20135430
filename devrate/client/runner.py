"""Run path — relay client, result rendering, and the single-slot controller.

RunController keeps at most one execution outstanding. A new run while
one is in flight is either rejected or cancels and replaces it
(``RunPolicy``). Results are keyed by request_id: only the current request
may render, so a late response from a replaced run is dropped.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from enum import Enum
from typing import Protocol

import httpx

from devrate.config import settings
from devrate.models.schemas import ExecutionRequest, ExecutionResult, StatusKind
from devrate.utils import get_logger

logger = get_logger("client.runner")

RUNNING_MESSAGE = "Compiling and running code...\n\n"
UNREACHABLE_MESSAGE = "Could not reach the execution relay."

_KIND_BY_STATUS = {
    400: StatusKind.VALIDATION_ERROR,
    502: StatusKind.UPSTREAM_ERROR,
}


class Executor(Protocol):
    async def execute(self, request: ExecutionRequest) -> ExecutionResult: ...

    async def close(self) -> None: ...


class RunPolicy(str, Enum):
    REJECT = "reject"
    REPLACE = "replace"


class RelayClient:
    """Async client for the execution relay's POST /api/execute."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.relay_url).rstrip("/")
        self.timeout = timeout or settings.client_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """POST the request; transport trouble becomes a local internal_error result."""
        client = await self._get_client()
        try:
            response = await client.post("/api/execute", json=request.to_wire())
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("relay_unreachable", request_id=request.request_id, error=str(e))
            return ExecutionResult(
                output=UNREACHABLE_MESSAGE,
                status=StatusKind.INTERNAL_ERROR,
                detail=type(e).__name__,
                request_id=request.request_id,
            )
        return result_from_response(request, response.status_code, body)


def result_from_response(request: ExecutionRequest, status_code: int, body: object) -> ExecutionResult:
    """Map a relay response onto an ExecutionResult."""
    payload = body if isinstance(body, dict) else {"result": body}

    if 200 <= status_code < 300:
        output = payload.get("output")
        return ExecutionResult(
            output="" if output is None else str(output),
            status=StatusKind.SUCCESS,
            request_id=request.request_id,
            payload=payload,
        )

    kind = _KIND_BY_STATUS.get(status_code, StatusKind.INTERNAL_ERROR)
    detail = None
    if kind is StatusKind.UPSTREAM_ERROR:
        detail = "\n".join(
            str(payload[key]) for key in ("detail", "jdoodleError") if payload.get(key)
        )
    return ExecutionResult(
        output=str(payload.get("error", f"Relay returned status {status_code}")),
        status=kind,
        detail=detail or None,
        request_id=request.request_id,
        payload=payload,
    )


def render_result(result: ExecutionResult) -> str:
    """Terminal text for a result."""
    if result.ok:
        text = result.output
        if result.payload.get("statusCode") not in (None, 200):
            text += f"\n[exit status {result.payload['statusCode']}]"
        return text
    lines = [f"Error: {result.output}"]
    if result.detail:
        lines.append(result.detail)
    return "\n".join(lines)


class RunController:
    """Single-slot execution: one request in flight, stale results discarded."""

    def __init__(
        self,
        executor: Executor,
        render: Callable[[str], None],
        policy: RunPolicy = RunPolicy.REPLACE,
        on_event: Callable[[str, dict], None] | None = None,
    ) -> None:
        self.executor = executor
        self._render = render
        self.policy = policy
        self._on_event = on_event or (lambda event_type, payload: None)
        self._current: ExecutionRequest | None = None
        self._task: asyncio.Task[ExecutionResult] | None = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def current_request_id(self) -> str | None:
        return self._current.request_id if self._current else None

    async def submit(self, request: ExecutionRequest) -> ExecutionResult | None:
        """Run ``request``. Returns None if it was rejected or superseded."""
        if self.in_flight:
            if self.policy is RunPolicy.REJECT:
                logger.info("run_rejected", request_id=request.request_id, busy=self.current_request_id)
                self._on_event("run_rejected", {"request_id": request.request_id})
                return None
            logger.info("run_replaced", old=self.current_request_id, new=request.request_id)
            self._task.cancel()

        self._current = request
        self._on_event("run_start", {"request_id": request.request_id, "language": request.language})
        self._render(RUNNING_MESSAGE)

        start = time.perf_counter()
        task = asyncio.ensure_future(self.executor.execute(request))
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if task.cancelled() and self._current is not request:
                # Replaced by a newer run; the caller itself was not cancelled
                return None
            raise

        if self._current is not request:
            logger.debug("run_stale", request_id=request.request_id)
            self._on_event("run_stale", {"request_id": request.request_id})
            return None

        self._render(render_result(result))
        self._on_event(
            "run_complete",
            {
                "request_id": request.request_id,
                "status": result.status.value,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return result

    def cancel(self) -> None:
        """Drop any in-flight run; its result will never render."""
        if self.in_flight:
            self._task.cancel()
        self._current = None
