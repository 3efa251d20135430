"""Fakes shared by unit tests — widget libraries, executors, upstream transport."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx

from devrate.models.schemas import ExecutionRequest, ExecutionResult, StatusKind
from devrate.relay.service import ExecutionRelay
from devrate.tools.jdoodle import JDoodleClient


# ─────────────────────────────────────────────────────────────────────────────
# Fake widget libraries — record every call, optionally fail at a given step
# ─────────────────────────────────────────────────────────────────────────────

class FakeEditor:
    def __init__(self, container, value: str, language: str) -> None:
        self.container = container
        self.value = value
        self.language = language
        self.listeners: list[Callable[[], None]] = []
        self.disposed = False

    def get_value(self) -> str:
        return self.value

    def type(self, value: str) -> None:
        self.value = value
        for callback in list(self.listeners):
            callback()

    def on_content_change(self, callback) -> None:
        self.listeners.append(callback)

    def dispose(self) -> None:
        self.disposed = True


class FakeEditorLibrary:
    """Args:
        raises: exception raised from construct().
    """

    def __init__(self, raises: Exception | None = None) -> None:
        self.raises = raises
        self.instances: list[FakeEditor] = []

    def construct(self, container, initial_value, language):
        if self.raises:
            raise self.raises
        editor = FakeEditor(container, initial_value, language)
        self.instances.append(editor)
        return editor


class FakeTerminal:
    def __init__(self, options: dict[str, Any], fail_on: str | None = None) -> None:
        self.options = options
        self.fail_on = fail_on
        self.calls: list[str] = []
        self.written: list[str] = []
        self.disposed = False

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_on == name:
            raise RuntimeError(f"{name} failed")

    def open(self, container) -> None:
        self._record("open")

    def write(self, text: str) -> None:
        self._record("write")
        self.written.append(text)

    def clear(self) -> None:
        self._record("clear")
        self.written.clear()

    def fit_to_container(self) -> None:
        self._record("fit")

    def dispose(self) -> None:
        self.calls.append("dispose")
        self.disposed = True

    @property
    def text(self) -> str:
        return "".join(self.written)


class FakeTerminalLibrary:
    """Args:
        fail_on: name of the handle step that raises ("open", "fit", "write").
        raises:  exception raised from construct() itself.
    """

    def __init__(self, fail_on: str | None = None, raises: Exception | None = None) -> None:
        self.fail_on = fail_on
        self.raises = raises
        self.instances: list[FakeTerminal] = []

    def construct(self, options):
        if self.raises:
            raise self.raises
        terminal = FakeTerminal(options, fail_on=self.fail_on)
        self.instances.append(terminal)
        return terminal


# ─────────────────────────────────────────────────────────────────────────────
# Fake executors
# ─────────────────────────────────────────────────────────────────────────────

class MockExecutor:
    """Executor double for RunController / orchestrator tests.

    Args:
        delay:  seconds to sleep before answering (per call, or list per call).
        output: text put into successful results.
    """

    def __init__(self, delay: float | list[float] = 0.0, output: str = "42") -> None:
        self.delays = list(delay) if isinstance(delay, list) else None
        self.delay = delay if not isinstance(delay, list) else 0.0
        self.output = output
        self.requests: list[ExecutionRequest] = []
        self.closed = False

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        self.requests.append(request)
        delay = self.delays.pop(0) if self.delays else self.delay
        if delay:
            await asyncio.sleep(delay)
        return ExecutionResult(
            output=f"{self.output}:{len(self.requests)}",
            status=StatusKind.SUCCESS,
            request_id=request.request_id,
        )

    async def close(self) -> None:
        self.closed = True


# ─────────────────────────────────────────────────────────────────────────────
# Upstream (JDoodle) fakes via httpx.MockTransport
# ─────────────────────────────────────────────────────────────────────────────

class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_handler)


def make_upstream(handler: Callable[[httpx.Request], httpx.Response]) -> tuple[JDoodleClient, RecordingTransport]:
    transport = RecordingTransport(handler)
    client = JDoodleClient(
        url="https://jdoodle.test/v1/execute",
        client_id="test-client-id",
        client_secret="test-client-secret",
        version_index="0",
        timeout=5.0,
        transport=transport,
    )
    return client, transport


def make_relay(handler: Callable[[httpx.Request], httpx.Response]) -> tuple[ExecutionRelay, RecordingTransport]:
    upstream, transport = make_upstream(handler)
    return ExecutionRelay(upstream), transport

