"""ExecutionRelay — validate, attach credentials, forward, map the answer.

Stateless across calls: no session, no queue, no retry. One upstream
attempt per client request.

Mapping:
    missing script/language     → 400 {"error"}                         (upstream untouched)
    upstream non-2xx            → 502 {"error", "detail", "jdoodleError"}
    upstream 2xx                → 200 <upstream JSON, unchanged>
    transport / malformed body  → 500 {"error"}                         (cause logged only)
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from devrate.errors import InternalError, UpstreamError, ValidationError
from devrate.models.schemas import RelayResponse, StatusKind
from devrate.tools.jdoodle import JDoodleClient
from devrate.utils import get_logger

logger = get_logger("relay")


class ExecutionRelay:
    """Forwards execution requests to JDoodle on behalf of the client."""

    def __init__(self, upstream: JDoodleClient | None = None) -> None:
        self.upstream = upstream or JDoodleClient()

    async def close(self) -> None:
        await self.upstream.close()

    async def execute(self, script: Any, language: Any) -> RelayResponse:
        """Run one request end to end and return the client-facing response."""
        try:
            result = await self._forward(script, language)
        except ValidationError as e:
            logger.info("relay_validation_error", error=e.message)
            return RelayResponse(
                status_code=e.status_code,
                kind=StatusKind.VALIDATION_ERROR,
                body={"error": e.message},
            )
        except UpstreamError as e:
            return RelayResponse(
                status_code=e.status_code,
                kind=StatusKind.UPSTREAM_ERROR,
                body={
                    "error": e.message,
                    "detail": e.detail,
                    "jdoodleError": e.upstream_body,
                },
            )
        except InternalError as e:
            return RelayResponse(
                status_code=e.status_code,
                kind=StatusKind.INTERNAL_ERROR,
                body={"error": e.message},
            )
        return RelayResponse(status_code=200, kind=StatusKind.SUCCESS, body=result)

    async def _forward(self, script: Any, language: Any) -> Any:
        if not _present(script) or not _present(language):
            raise ValidationError()

        logger.info("relay_executing", language=language, script_len=len(script))
        start = time.perf_counter()

        try:
            response = await self.upstream.execute(script, language)
        except (httpx.HTTPError, ValueError) as e:
            # ValueError covers scripts that cannot be encoded (lone surrogates)
            logger.error("relay_transport_error", language=language, error=type(e).__name__)
            raise InternalError() from e

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.info("relay_upstream_status", status=response.status_code, duration_ms=duration_ms)

        if not response.is_success:
            body = response.text
            logger.error(
                "relay_upstream_error",
                status=response.status_code,
                body=body[:500],
            )
            raise UpstreamError(response.status_code, body)

        try:
            result = response.json()
        except ValueError as e:
            logger.error("relay_malformed_upstream_body", error=str(e), body=response.text[:200])
            raise InternalError() from e

        logger.debug("relay_result", result_keys=sorted(result) if isinstance(result, dict) else None)
        return result


def _present(value: Any) -> bool:
    return isinstance(value, str) and bool(value)
