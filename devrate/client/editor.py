"""EditorSession — one live editor widget and the buffer it mirrors."""

from __future__ import annotations

import asyncio
from contextlib import ExitStack

from devrate.client.widgets import EditorHandle, EditorLibrary, MountPoint
from devrate.errors import InitializationError
from devrate.models.schemas import Language
from devrate.utils import get_logger

logger = get_logger("client.editor")

DEFAULT_CODE = 'print("Hello, DevRate!")\n\n# Your code analysis model will integrate here later!\n'


class EditorSession:
    """Owns one editor handle. ``buffer`` is only ever written from change events."""

    def __init__(
        self,
        library: EditorLibrary,
        mount: MountPoint,
        initial_code: str = DEFAULT_CODE,
        language: Language = Language.PYTHON,
    ) -> None:
        self._library = library
        self._mount = mount
        self.buffer = initial_code
        self.language = language
        self.handle: EditorHandle | None = None
        self.ready = False
        self._stack = ExitStack()

    def construct(self) -> None:
        try:
            handle = self._library.construct(self._mount, self.buffer, self.language.editor_mode)
            self.handle = handle
            self._stack.callback(self._dispose_handle)
            handle.on_content_change(self._on_change)
        except Exception as e:
            logger.error("editor_init_failed", error=str(e), mount=self._mount.name)
            raise InitializationError("editor", str(e)) from e

    async def settle(self, delay: float) -> None:
        """Wait for the widget's layout to stabilise, then mark ready.

        Prefers a real layout-complete event when the handle offers one
        (bounded by ``delay``); otherwise ``delay`` is a plain heuristic.
        """
        subscribe = getattr(self.handle, "on_layout_ready", None)
        if callable(subscribe):
            loop = asyncio.get_running_loop()
            laid_out: asyncio.Future[None] = loop.create_future()

            def _done() -> None:
                if not laid_out.done():
                    laid_out.set_result(None)

            subscribe(lambda: loop.call_soon_threadsafe(_done))
            try:
                await asyncio.wait_for(laid_out, timeout=delay)
            except asyncio.TimeoutError:
                logger.debug("editor_layout_event_timeout", delay=delay)
        else:
            await asyncio.sleep(delay)

        if self.handle is not None:
            self.ready = True

    def _on_change(self) -> None:
        if self.handle is not None:
            self.buffer = self.handle.get_value()

    def _dispose_handle(self) -> None:
        handle, self.handle = self.handle, None
        self.ready = False
        if handle is not None:
            handle.dispose()

    def close(self) -> None:
        self._stack.close()
