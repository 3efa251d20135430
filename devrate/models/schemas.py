"""Core schemas — ExecutionRequest, ExecutionResult, and shared types."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    """Provider language selectors offered by the sandbox."""

    PYTHON = "python3"
    JAVA = "java"
    CPP = "cpp17"
    C = "c"
    JAVASCRIPT = "nodejs"

    @property
    def editor_mode(self) -> str:
        """Syntax mode name understood by the editor widget."""
        return _EDITOR_MODES[self]


_EDITOR_MODES = {
    Language.PYTHON: "python",
    Language.JAVA: "java",
    Language.CPP: "cpp",
    Language.C: "c",
    Language.JAVASCRIPT: "javascript",
}


class StatusKind(str, Enum):
    SUCCESS = "success"
    UPSTREAM_ERROR = "upstream_error"
    VALIDATION_ERROR = "validation_error"
    INTERNAL_ERROR = "internal_error"


class ExecutionRequest(BaseModel):
    """A single run attempt. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    script: str = Field(description="Source code exactly as it sits in the editor buffer")
    language: str = Field(description="Provider language selector, e.g. 'python3'")
    request_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Identity used to discard stale responses",
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_wire(self) -> dict[str, str]:
        """Body for POST /api/execute — identity stays client side."""
        return {"script": self.script, "language": self.language}


class ExecutionResult(BaseModel):
    """Outcome of one ExecutionRequest, consumed once by the renderer."""

    output: str = Field(default="", description="Text to show in the terminal")
    status: StatusKind = Field(default=StatusKind.SUCCESS)
    detail: str | None = Field(default=None, description="Diagnostic context for failures")
    request_id: str = Field(default="", description="Echoed from the request")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Raw relay body (upstream result on success)",
    )
    simulated: bool = Field(default=False, description="True when produced offline")

    @property
    def ok(self) -> bool:
        return self.status is StatusKind.SUCCESS


class RelayResponse(BaseModel):
    """What the relay hands back to its HTTP layer."""

    status_code: int
    kind: StatusKind
    body: Any = Field(default_factory=dict)
