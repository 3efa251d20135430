"""DevRate — browser-style code sandbox: readiness orchestrator + execution relay."""

__version__ = "0.1.0"
