"""DevRate CLI — the user interface.

Commands:
    devrate serve     — Run the execution relay (POST /api/execute)
    devrate run       — Headless sandbox session: load widgets, run a file, show the terminal
    devrate preview   — Offline (simulated) output for a file, no relay needed
    devrate trace     — View readiness/run traces
    devrate version   — Show version
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from devrate.utils import level_name, setup_logging

# Initialize logging on import
setup_logging()

app = typer.Typer(
    name="devrate",
    help="DevRate — code sandbox with a credential-holding execution relay",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()


def _get_trace_bus():
    """Get or create the global persisted TraceBus."""
    from devrate.models.trace import TraceBus
    if not hasattr(_get_trace_bus, "_bus"):
        _get_trace_bus._bus = TraceBus()
    return _get_trace_bus._bus


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Cannot read {path}: {e}[/]")
        raise typer.Exit(code=1) from e


def _parse_language(value: str):
    from devrate.models.schemas import Language

    try:
        return Language(value)
    except ValueError:
        choices = ", ".join(lang.value for lang in Language)
        raise typer.BadParameter(f"unknown language {value!r} (choose from: {choices})") from None


# ── devrate serve ─────────────────────────────────────────────


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (default from settings)"),
    port: int = typer.Option(None, "--port", "-p", help="Port (default from PORT / settings)"),
):
    """🚀 Run the execution relay."""
    import uvicorn

    from devrate.config import settings

    bind_host = host or settings.host
    bind_port = port or settings.port
    console.print(Panel(
        f"[bold]Endpoint:[/] POST http://{bind_host}:{bind_port}/api/execute\n"
        f"[bold]Upstream:[/] {settings.jdoodle_url}",
        title="[bold green]✅ Compiler Proxy Server[/]",
        border_style="green",
    ))
    uvicorn.run("devrate.relay.app:app", host=bind_host, port=bind_port, log_level=level_name(settings.log_level))


# ── devrate run ───────────────────────────────────────────────


@app.command()
def run(
    path: Path = typer.Argument(..., help="Source file to execute"),
    language: str = typer.Option("python3", "--language", "-l", help="Provider language selector"),
    offline: bool = typer.Option(False, "--offline", help="Use the simulated renderer instead of the relay"),
    relay_url: str = typer.Option(None, "--relay", help="Relay base URL (default from settings)"),
):
    """▶ Run a file through a headless sandbox session."""
    code = _read_source(path)
    lang = _parse_language(language)
    ok = asyncio.run(_run(code, lang, offline, relay_url))
    if not ok:
        raise typer.Exit(code=1)


async def _run(code: str, language, offline: bool, relay_url: str | None) -> bool:
    from devrate.client.headless import HeadlessEditorLibrary, HeadlessTerminalLibrary
    from devrate.client.readiness import ReadinessOrchestrator
    from devrate.client.runner import RelayClient
    from devrate.client.simulated import OfflineExecutor
    from devrate.client.widgets import EDITOR_LIB, TERMINAL_LIB, LibraryRegistry, MountPoint, Window
    from devrate.errors import InitializationError

    registry = LibraryRegistry()
    executor = OfflineExecutor() if offline else RelayClient(base_url=relay_url)
    orchestrator = ReadinessOrchestrator(
        registry,
        Window(),
        editor_mount=MountPoint("editor"),
        terminal_mount=MountPoint("terminal", width=console.width),
        initial_code=code,
        language=language,
        executor=executor,
        trace=_get_trace_bus(),
    )

    async with orchestrator:
        registry.register(EDITOR_LIB, HeadlessEditorLibrary())
        registry.register(TERMINAL_LIB, HeadlessTerminalLibrary(console=console))
        try:
            with console.status("[dim]Loading compiler tools...[/]", spinner="dots"):
                await orchestrator.wait_interactive()
        except InitializationError as e:
            console.print(f"[red]⚠ {e}[/]")
            return False

        result = await orchestrator.run()

    if result is None:
        return False
    if result.simulated:
        console.print("\n[dim](simulated output — not a real execution)[/]")
    console.print(f"[dim]Trace: devrate trace {orchestrator.session_id}[/]")
    return result.ok


# ── devrate preview ───────────────────────────────────────────


@app.command()
def preview(path: Path = typer.Argument(..., help="Source file to preview")):
    """👀 Simulated output for a file (static approximation, nothing is executed)."""
    from devrate.client.simulated import simulate_output

    console.print(Panel(
        simulate_output(_read_source(path)),
        title="[bold yellow]Simulated Output[/]",
        border_style="yellow",
    ))


# ── devrate trace ─────────────────────────────────────────────


@app.command()
def trace(
    session_id: str = typer.Argument(
        None,
        help="Session ID to trace. If omitted, shows recent traces from disk.",
    ),
):
    """🔍 View the readiness/run trace of a session."""
    bus = _get_trace_bus()

    if session_id:
        t = bus.get_trace(session_id)
        if not t.events:
            console.print(f"[yellow]No trace found for: {session_id}[/]")
            return

        started = t.started_at.strftime("%H:%M:%S") if t.started_at else "?"
        console.print(Panel(
            f"[bold]Session:[/] {t.session_id}\n"
            f"[bold]Started:[/] {started}\n"
            f"[bold]Duration:[/] {t.total_duration_ms}ms\n"
            f"[bold]Success:[/] {'✅' if t.success else '❌'}\n"
            f"[bold]Sources:[/] {', '.join(t.sources)}",
            title="[bold blue]🔍 Session Trace[/]",
            border_style="blue",
        ))

        table = Table(title="Events", show_lines=True)
        table.add_column("#", style="dim", width=3)
        table.add_column("Offset", style="dim", width=10)
        table.add_column("Type", style="cyan")
        table.add_column("Source", style="green")
        table.add_column("Info", style="white")

        t0 = t.started_at
        for i, event in enumerate(t.events, 1):
            offset = f"+{(event.timestamp - t0).total_seconds() * 1000:.0f}ms" if t0 else "—"
            info = ""
            if event.error:
                info = f"[red]ERR: {event.error[:60]}[/]"
            elif event.payload:
                info = ", ".join(f"{k}={v}" for k, v in event.payload.items())[:80]
            table.add_row(str(i), offset, event.event_type, event.source, info)

        console.print(table)
    else:
        session_ids = bus.list_traces(limit=15)
        if not session_ids:
            console.print("[yellow]No traces found. Run 'devrate run <file>' first.[/]")
            return

        table = Table(title="Recent Sessions  (from ~/.devrate/traces/)")
        table.add_column("Session ID", style="cyan")
        table.add_column("Events", justify="right")
        table.add_column("Duration", style="yellow", justify="right")
        table.add_column("Status", justify="center")

        for sid in session_ids:
            t = bus.get_trace(sid)
            table.add_row(
                t.session_id,
                str(len(t.events)),
                f"{t.total_duration_ms:.0f}ms",
                "✅" if t.success else "❌",
            )

        console.print(table)
        console.print("[dim]Run: devrate trace <session_id>  for full event log[/]")


# ── devrate version ───────────────────────────────────────────


@app.command()
def version():
    """📦 Show DevRate version."""
    from devrate import __version__
    console.print(f"[bold cyan]DevRate[/] v{__version__}")


# ── Entry point ───────────────────────────────────────────────

if __name__ == "__main__":
    app()
