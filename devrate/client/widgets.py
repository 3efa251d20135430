"""Widget contracts and the page-level globals the orchestrator depends on.

The editor and terminal are external components. The orchestrator only
sees the small lifecycle contracts below (construct / mutate / dispose).

LibraryRegistry stands in for the page's global namespace: loaders put
libraries there out-of-band. ``register`` also resolves completion futures;
``expose`` does not, which is how a loader without a completion signal
behaves, and why the orchestrator keeps a poll fallback.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

EDITOR_LIB = "editor"
TERMINAL_LIB = "terminal"


# ── Widget contracts ──────────────────────────────────────────────────────────


@runtime_checkable
class EditorHandle(Protocol):
    def get_value(self) -> str: ...

    def on_content_change(self, callback: Callable[[], None]) -> None: ...

    def dispose(self) -> None: ...


class EditorLibrary(Protocol):
    def construct(self, container: MountPoint, initial_value: str, language: str) -> EditorHandle: ...


@runtime_checkable
class TerminalHandle(Protocol):
    def open(self, container: MountPoint) -> None: ...

    def write(self, text: str) -> None: ...

    def clear(self) -> None: ...

    def fit_to_container(self) -> None: ...

    def dispose(self) -> None: ...


class TerminalLibrary(Protocol):
    def construct(self, options: dict[str, Any]) -> TerminalHandle: ...


# ── Page globals ──────────────────────────────────────────────────────────────


class MountPoint:
    """A container a widget attaches to."""

    def __init__(self, name: str, width: int = 80, height: int = 24) -> None:
        self.name = name
        self.width = width
        self.height = height

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def __repr__(self) -> str:
        return f"MountPoint({self.name!r}, {self.width}x{self.height})"


class Window:
    """Global event-listener registry (resize and friends)."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable[[], None]]] = defaultdict(list)

    def add_listener(self, event: str, callback: Callable[[], None]) -> None:
        self._listeners[event].append(callback)

    def remove_listener(self, event: str, callback: Callable[[], None]) -> None:
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def dispatch(self, event: str) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback()

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))


class LibraryRegistry:
    """Where externally loaded libraries become observable."""

    def __init__(self) -> None:
        self._libs: dict[str, Any] = {}
        self._waiters: list[tuple[frozenset[str], asyncio.Future[None]]] = []

    def get(self, name: str) -> Any | None:
        return self._libs.get(name)

    def expose(self, name: str, library: Any) -> None:
        """Make a library visible without signalling anyone."""
        self._libs[name] = library

    def register(self, name: str, library: Any) -> None:
        """Make a library visible and resolve any completion futures it satisfies."""
        self.expose(name, library)
        pending = []
        for names, fut in self._waiters:
            if fut.done():
                continue
            if names <= self._libs.keys():
                fut.set_result(None)
            else:
                pending.append((names, fut))
        self._waiters = pending

    def completion(self, *names: str) -> asyncio.Future[None]:
        """Future resolved once every named library has been registered."""
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        wanted = frozenset(names)
        if wanted <= self._libs.keys():
            fut.set_result(None)
        else:
            self._waiters.append((wanted, fut))
        return fut
