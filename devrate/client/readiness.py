"""ReadinessOrchestrator — gates the sandbox UI on two external libraries.

Phases:
    LOADING → LIBS_READY → EDITOR_INITIALIZING → INTERACTIVE
and, independently, TerminalPhase PENDING → READY (or FAILED).

Library readiness is observed on a poll task that also wakes early on the
registry's completion future, so a loader that signals is picked up at
once and one that only exposes a global is still seen within a tick. The
wait is bounded by ``load_timeout``.

Everything created along the way (poll task, settle task, widgets, resize
listener, in-flight run) is recorded in one ExitStack; ``teardown`` unwinds
it exactly once whichever phase was reached.
"""

from __future__ import annotations

import asyncio
import uuid
from contextlib import ExitStack
from enum import Enum
from typing import Any

from devrate.client.editor import DEFAULT_CODE, EditorSession
from devrate.client.runner import Executor, RelayClient, RunController, RunPolicy
from devrate.client.terminal import TerminalSession
from devrate.client.widgets import EDITOR_LIB, TERMINAL_LIB, LibraryRegistry, MountPoint, Window
from devrate.config import settings
from devrate.errors import InitializationError
from devrate.models.schemas import ExecutionRequest, ExecutionResult, Language
from devrate.models.trace import TraceBus, TraceEvent
from devrate.utils import get_logger

logger = get_logger("client.readiness")


class Phase(int, Enum):
    LOADING = 0
    LIBS_READY = 1
    EDITOR_INITIALIZING = 2
    INTERACTIVE = 3


class TerminalPhase(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class LoadState:
    """Availability of the two libraries. Latches once both are seen."""

    def __init__(self) -> None:
        self.editor_lib_ready = False
        self.terminal_lib_ready = False

    @property
    def ready(self) -> bool:
        return self.editor_lib_ready and self.terminal_lib_ready

    def observe(self, editor: bool, terminal: bool) -> bool:
        """Fold in one observation. Returns True only on the transition to ready."""
        if self.ready:
            return False
        self.editor_lib_ready = self.editor_lib_ready or editor
        self.terminal_lib_ready = self.terminal_lib_ready or terminal
        return self.ready


class ReadinessOrchestrator:
    """Owns the page lifecycle: libraries, widgets, buffer, and the run action.

    Usage:
        async with ReadinessOrchestrator(registry, window, editor_mount=em,
                                         terminal_mount=tm) as page:
            await page.wait_interactive()
            await page.run()
    """

    def __init__(
        self,
        registry: LibraryRegistry,
        window: Window,
        *,
        editor_mount: MountPoint | None = None,
        terminal_mount: MountPoint | None = None,
        initial_code: str = DEFAULT_CODE,
        language: Language = Language.PYTHON,
        executor: Executor | None = None,
        run_policy: RunPolicy = RunPolicy.REPLACE,
        poll_interval: float | None = None,
        settle_delay: float | None = None,
        load_timeout: float | None = None,
        trace: TraceBus | None = None,
    ) -> None:
        self.registry = registry
        self.window = window
        self.editor_mount = editor_mount
        self.terminal_mount = terminal_mount
        self.language = language
        self.poll_interval = settings.poll_interval if poll_interval is None else poll_interval
        self.settle_delay = settings.settle_delay if settle_delay is None else settle_delay
        self.load_timeout = settings.load_timeout if load_timeout is None else load_timeout

        self.session_id = f"page-{uuid.uuid4().hex[:12]}"
        self.trace = trace or TraceBus(persist=False)
        self.log = logger.bind(session_id=self.session_id)

        self.load_state = LoadState()
        self.phase = Phase.LOADING
        self.terminal_phase = TerminalPhase.PENDING
        self.poll_ticks = 0
        self.editor: EditorSession | None = None
        self.terminal: TerminalSession | None = None
        self.editor_failed = False
        self._initial_code = initial_code

        self.runner = RunController(
            executor or RelayClient(),
            render=self._render,
            policy=run_policy,
            on_event=self._on_run_event,
        )

        self._stack = ExitStack()
        self._poll_task: asyncio.Task[None] | None = None
        self._settle_task: asyncio.Task[None] | None = None
        self._interactive = asyncio.Event()
        self._closed = False
        self._stack.callback(self.runner.cancel)

    # ── Context manager ───────────────────────────────────────────────────

    async def __aenter__(self) -> ReadinessOrchestrator:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.teardown()

    # ── Observability ─────────────────────────────────────────────────────

    def _emit(
        self,
        event_type: str,
        source: str,
        payload: dict | None = None,
        error: str = "",
        duration_ms: float = 0.0,
    ) -> None:
        self.trace.emit(TraceEvent(
            session_id=self.session_id,
            event_type=event_type,
            source=source,
            payload=payload or {},
            error=error,
            duration_ms=duration_ms,
        ))

    def _on_run_event(self, event_type: str, payload: dict) -> None:
        self._emit(event_type, "runner", payload, duration_ms=payload.get("duration_ms", 0.0))

    def _advance(self, phase: Phase) -> None:
        """Move forward only. Re-observing an earlier or equal phase is a no-op."""
        if phase <= self.phase:
            return
        self.log.info("phase_transition", old=self.phase.name, new=phase.name)
        self.phase = phase
        self._emit(phase.name.lower(), "readiness")
        if phase is Phase.INTERACTIVE:
            self._interactive.set()

    # ── LOADING → LIBS_READY ──────────────────────────────────────────────

    def start(self) -> None:
        """Begin watching the registry. Idempotent."""
        if self._closed or self._poll_task is not None:
            return
        self._poll_task = asyncio.ensure_future(self._watch_libraries())
        self._stack.callback(self._stop_polling)

    def _observe(self) -> None:
        self.poll_ticks += 1
        became_ready = self.load_state.observe(
            editor=self.registry.get(EDITOR_LIB) is not None,
            terminal=self.registry.get(TERMINAL_LIB) is not None,
        )
        if became_ready:
            self.log.info("libs_ready", ticks=self.poll_ticks)
            self._advance(Phase.LIBS_READY)
            self._initialize_widgets()

    async def _watch_libraries(self) -> None:
        signal = self.registry.completion(EDITOR_LIB, TERMINAL_LIB)
        try:
            while True:
                self._observe()
                if self.load_state.ready:
                    return
                try:
                    await asyncio.wait_for(asyncio.shield(signal), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            signal.cancel()

    def _stop_polling(self) -> None:
        if self._poll_task is not None and not self._poll_task.done():
            self._poll_task.cancel()

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def wait_libraries(self) -> None:
        """Wait until LIBS_READY, bounded by load_timeout."""
        self.start()
        task = self._poll_task
        if task is None:
            raise InitializationError("libraries", "orchestrator already torn down")

        done, _ = await asyncio.wait({task}, timeout=self.load_timeout)
        if not done:
            self._stop_polling()
            self.log.error("libs_timeout", timeout=self.load_timeout, ticks=self.poll_ticks)
            self._emit("libs_timeout", "readiness", {"timeout": self.load_timeout}, error="timeout")
            raise InitializationError("libraries", f"not available after {self.load_timeout}s")
        if task.cancelled() or not self.load_state.ready:
            raise InitializationError("libraries", "polling stopped before they were ready")
        task.result()

    # ── LIBS_READY → widgets ──────────────────────────────────────────────

    def attach(self, *, editor: MountPoint | None = None, terminal: MountPoint | None = None) -> None:
        """Provide mount points late. Widgets initialise as soon as libs are ready too."""
        if editor is not None and self.editor_mount is None:
            self.editor_mount = editor
        if terminal is not None and self.terminal_mount is None:
            self.terminal_mount = terminal
        if self.load_state.ready:
            self._initialize_widgets()

    def _initialize_widgets(self) -> None:
        if self._closed:
            return
        if self.terminal is None and self.terminal_mount is not None:
            self._init_terminal()
        if self.editor is None and self.editor_mount is not None:
            self._init_editor()

    def _init_terminal(self) -> None:
        terminal = TerminalSession(self.registry.get(TERMINAL_LIB), self.window, self.terminal_mount)
        self.terminal = terminal
        self._stack.callback(terminal.close)
        try:
            terminal.open()
        except InitializationError as e:
            self.terminal_phase = TerminalPhase.FAILED
            self._emit("terminal_failed", "terminal", error=str(e))
            return
        self.terminal_phase = TerminalPhase.READY
        self._emit("terminal_ready", "terminal")

    def _init_editor(self) -> None:
        editor = EditorSession(
            self.registry.get(EDITOR_LIB),
            self.editor_mount,
            initial_code=self._initial_code,
            language=self.language,
        )
        self.editor = editor
        self._stack.callback(editor.close)
        self._advance(Phase.EDITOR_INITIALIZING)
        try:
            editor.construct()
        except InitializationError as e:
            # Run stays disabled; the terminal keeps working
            self.editor_failed = True
            self._emit("editor_failed", "editor", error=str(e))
            return
        self._settle_task = asyncio.ensure_future(self._settle_editor(editor))
        self._stack.callback(self._cancel_settle)

    async def _settle_editor(self, editor: EditorSession) -> None:
        await editor.settle(self.settle_delay)
        if editor.ready and not self._closed:
            self._advance(Phase.INTERACTIVE)

    def _cancel_settle(self) -> None:
        if self._settle_task is not None and not self._settle_task.done():
            self._settle_task.cancel()

    async def wait_interactive(self, timeout: float | None = None) -> None:
        """Wait for INTERACTIVE. Raises InitializationError if it cannot happen in time."""
        await self.wait_libraries()
        if self.editor_failed:
            raise InitializationError("editor", "construction failed")
        limit = timeout if timeout is not None else self.load_timeout + self.settle_delay
        try:
            await asyncio.wait_for(self._interactive.wait(), timeout=limit)
        except asyncio.TimeoutError:
            raise InitializationError("editor", f"not interactive after {limit}s") from None

    # ── Buffer & run ──────────────────────────────────────────────────────

    @property
    def buffer(self) -> str:
        return self.editor.buffer if self.editor is not None else self._initial_code

    @property
    def run_enabled(self) -> bool:
        return self.phase is Phase.INTERACTIVE and not self._closed

    async def run(self) -> ExecutionResult | None:
        """Execute the buffer. A no-op (None) unless the page is interactive."""
        if not self.run_enabled:
            self.log.debug("run_ignored", phase=self.phase.name)
            return None
        request = ExecutionRequest(script=self.buffer, language=self.language.value)
        return await self.runner.submit(request)

    def _render(self, text: str) -> None:
        if self.terminal is not None and self.terminal_phase is TerminalPhase.READY:
            self.terminal.write(text)

    # ── Teardown ──────────────────────────────────────────────────────────

    async def teardown(self) -> None:
        """Release everything that was created, once. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        error = ""
        try:
            self._stack.close()
        except Exception as e:
            # ExitStack has still run every other callback
            error = str(e)
            self.log.error("teardown_cleanup_failed", error=error)
        finally:
            await self.runner.executor.close()
            self._emit("teardown", "readiness", {"phase": self.phase.name, "ticks": self.poll_ticks}, error=error)
            self.log.info("teardown", phase=self.phase.name)
