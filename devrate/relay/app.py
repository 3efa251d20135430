"""
FastAPI application for the execution relay.

Single endpoint, POST /api/execute. Credentials live in server settings and
never appear in a response body or log line.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from devrate import __version__
from devrate.relay.service import ExecutionRelay
from devrate.utils import get_logger

logger = get_logger("relay.app")

router = APIRouter()


@router.get("/health")
def health():
    return JSONResponse(status_code=200, content={"status": "ok"})


@router.post("/api/execute")
async def execute(request: Request):
    """
    Forward {script, language} to the execution provider.

    A body that is not a JSON object is treated like one with both
    fields missing, so the client always gets the {"error"} contract
    instead of a framework validation payload.
    """
    try:
        data = await request.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        data = {}

    relay: ExecutionRelay = request.app.state.relay
    outcome = await relay.execute(data.get("script"), data.get("language"))
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)


def create_app(relay: ExecutionRelay | None = None) -> FastAPI:
    """Build the relay app. Tests pass their own relay with a fake upstream."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not app.state.relay.upstream.has_credentials:
            logger.warning("relay_missing_credentials", hint="set JDOODLE_CLIENT_ID / JDOODLE_CLIENT_SECRET")
        logger.info("relay_ready", version=__version__)
        yield
        await app.state.relay.close()

    app = FastAPI(
        title="DevRate Execution Relay",
        description="Forwards sandbox code to the JDoodle execution API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.relay = relay or ExecutionRelay()
    app.include_router(router)
    return app


app = create_app()
