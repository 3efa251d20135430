"""TerminalSession — one live terminal widget, write-only from our side.

Init order: construct → open(mount) → fit → resize listener → banner.
Each step that creates something pushes its own cleanup, so ``close()``
releases exactly what was created even when a later step raised.
"""

from __future__ import annotations

from contextlib import ExitStack
from typing import Any

from devrate.client.widgets import MountPoint, TerminalHandle, TerminalLibrary, Window
from devrate.errors import InitializationError
from devrate.utils import get_logger

logger = get_logger("client.terminal")

BANNER = "DevRate Compiler Initializing..."
READY_HEADER = "\x1b[32;1mDevRate Compiler Ready...\x1b[0m\r\n"
SEPARATOR = "----------------------------------------\r\n\n"

DEFAULT_OPTIONS: dict[str, Any] = {
    "cursor_blink": True,
    "font_family": 'Consolas, "Courier New", monospace',
    "font_size": 14,
    "theme": {"background": "#1f2937", "foreground": "#f3f4f6", "cursor": "#f3f4f6"},
}


class TerminalSession:
    """Owns one terminal handle and the window resize listener bound to it."""

    def __init__(
        self,
        library: TerminalLibrary,
        window: Window,
        mount: MountPoint,
        options: dict[str, Any] | None = None,
    ) -> None:
        self._library = library
        self._window = window
        self._mount = mount
        self._options = {**DEFAULT_OPTIONS, **(options or {})}
        self._stack = ExitStack()
        self.handle: TerminalHandle | None = None
        self.ready = False

    def open(self) -> None:
        """Build the widget. Raises InitializationError; partial state is left for close()."""
        try:
            handle = self._library.construct(self._options)
            self.handle = handle
            self._stack.callback(self._dispose_handle)

            handle.open(self._mount)
            handle.fit_to_container()

            self._window.add_listener("resize", self._on_resize)
            self._stack.callback(self._window.remove_listener, "resize", self._on_resize)

            self.write(BANNER, clear=False)
        except Exception as e:
            logger.error("terminal_init_failed", error=str(e), mount=self._mount.name)
            raise InitializationError("terminal", str(e)) from e

        self.ready = True
        logger.debug("terminal_ready", mount=self._mount.name)

    def _on_resize(self) -> None:
        if self.handle is not None:
            self.handle.fit_to_container()

    def _dispose_handle(self) -> None:
        handle, self.handle = self.handle, None
        self.ready = False
        if handle is not None:
            handle.dispose()

    def write(self, text: str, clear: bool = True) -> None:
        """Write text line by line; ``clear`` resets the screen and header first."""
        handle = self.handle
        if handle is None:
            return
        if clear:
            handle.clear()
            handle.write(READY_HEADER)
            handle.write(SEPARATOR)
        for line in text.split("\n"):
            handle.write(line + "\r\n")

    def close(self) -> None:
        """Unregister the listener and dispose the widget. Safe to call twice."""
        self._stack.close()
