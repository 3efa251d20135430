"""Headless widget libraries — in-process editor and terminal for the CLI.

They honour the same handle contracts as the browser widgets, so
``devrate run`` drives the real ReadinessOrchestrator end to end.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from rich.console import Console
from rich.text import Text

from devrate.client.widgets import MountPoint

_CRLF = re.compile(r"\r\n?")


class HeadlessEditor:
    def __init__(self, container: MountPoint, value: str, language: str) -> None:
        self.container = container
        self.language = language
        self._value = value
        self._listeners: list[Callable[[], None]] = []
        self.disposed = False

    def get_value(self) -> str:
        return self._value

    def set_value(self, value: str) -> None:
        """Simulate typing: replace the content and fire change listeners."""
        self._value = value
        for callback in list(self._listeners):
            callback()

    def on_content_change(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def on_layout_ready(self, callback: Callable[[], None]) -> None:
        # No layout to wait for
        callback()

    def dispose(self) -> None:
        self._listeners.clear()
        self.disposed = True


class HeadlessEditorLibrary:
    def construct(self, container: MountPoint, initial_value: str, language: str) -> HeadlessEditor:
        return HeadlessEditor(container, initial_value, language)


class HeadlessTerminal:
    """Collects written text; optionally mirrors it to a rich console."""

    def __init__(self, options: dict[str, Any], console: Console | None = None) -> None:
        self.options = options
        self.console = console
        self.container: MountPoint | None = None
        self.screen: list[str] = []
        self.columns = 0
        self.disposed = False

    def open(self, container: MountPoint) -> None:
        self.container = container

    def write(self, text: str) -> None:
        self.screen.append(text)
        if self.console is not None:
            self.console.print(Text.from_ansi(_CRLF.sub("\n", text)), end="")

    def clear(self) -> None:
        self.screen.clear()

    def fit_to_container(self) -> None:
        if self.container is not None:
            self.columns = self.container.width

    def dispose(self) -> None:
        self.disposed = True

    @property
    def text(self) -> str:
        return _CRLF.sub("\n", "".join(self.screen))


class HeadlessTerminalLibrary:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console
        self.instances: list[HeadlessTerminal] = []

    def construct(self, options: dict[str, Any]) -> HeadlessTerminal:
        terminal = HeadlessTerminal(options, console=self.console)
        self.instances.append(terminal)
        return terminal
