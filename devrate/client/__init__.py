"""Client orchestrator: readiness state machine, widget lifecycles, run path."""

from devrate.client.readiness import LoadState, Phase, ReadinessOrchestrator, TerminalPhase
from devrate.client.runner import RelayClient, RunController, RunPolicy
from devrate.client.simulated import OfflineExecutor, simulate_output
from devrate.client.widgets import LibraryRegistry, MountPoint, Window

__all__ = [
    "LibraryRegistry",
    "LoadState",
    "MountPoint",
    "OfflineExecutor",
    "Phase",
    "ReadinessOrchestrator",
    "RelayClient",
    "RunController",
    "RunPolicy",
    "TerminalPhase",
    "Window",
    "simulate_output",
]
