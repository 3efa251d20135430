"""Offline output renderer — a static approximation, NOT an interpreter.

Collects ``print(...)`` lines from the buffer and shows bare string
literals verbatim; anything else becomes a placeholder. Used when no relay
is reachable or for local preview, and always labelled as simulated.
"""

from __future__ import annotations

import re

from devrate.models.schemas import ExecutionRequest, ExecutionResult, StatusKind

OUTPUT_HEADER = "--- Execution Output (Parsed Print Statements) ---"
PLACEHOLDER = "...execution result..."
NO_OUTPUT_MESSAGE = (
    "--- Execution Successful (Simulated) ---\n"
    "No explicit print statements found in code.\n"
    "This area will eventually display output from your cloud-based compiler.\n"
    "---------------------------------------\n"
    "Next Steps: Integrate AI Code Detector here."
)

_PRINT_ARG = re.compile(r"print\s*\(([^)]+)\)")


def _literal_or_placeholder(line: str) -> str:
    match = _PRINT_ARG.search(line)
    if not match:
        return PLACEHOLDER
    content = match.group(1).strip()
    if len(content) >= 2 and content[0] == content[-1] and content[0] in "\"'":
        return content[1:-1]
    return PLACEHOLDER


def simulate_output(code: str) -> str:
    """Best-effort rendering of what ``code`` would print. Never empty."""
    printed = [
        _literal_or_placeholder(line)
        for line in code.split("\n")
        if line.strip().startswith("print(")
    ]
    if printed:
        return "\n".join([OUTPUT_HEADER, *printed])
    return NO_OUTPUT_MESSAGE


class OfflineExecutor:
    """Run backend with the same call shape as RelayClient, but local."""

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        return ExecutionResult(
            output=simulate_output(request.script),
            status=StatusKind.SUCCESS,
            request_id=request.request_id,
            simulated=True,
        )

    async def close(self) -> None:
        pass
