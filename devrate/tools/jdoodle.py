"""Async client for the JDoodle execute API.

    Execute:  POST https://api.jdoodle.com/v1/execute
              {clientId, clientSecret, script, language, versionIndex, stdin}

Credentials are attached here, on the server, from settings. Nothing the
caller passes can choose or override them. Used ONLY by the ExecutionRelay.
"""

from __future__ import annotations

from typing import Any

import httpx

from devrate.config import settings
from devrate.utils import get_logger

logger = get_logger("jdoodle")


class JDoodleClient:
    """Thin async client: one pooled httpx client, one endpoint, no retries.

    Returns the raw ``httpx.Response`` — status mapping is the relay's job.
    Transport failures propagate as ``httpx.HTTPError``.
    """

    def __init__(
        self,
        url: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        version_index: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url or settings.jdoodle_url
        self._client_id = client_id if client_id is not None else settings.jdoodle_client_id.get_secret_value()
        self._client_secret = (
            client_secret if client_secret is not None else settings.jdoodle_client_secret.get_secret_value()
        )
        self.version_index = version_index or settings.jdoodle_version_index
        self.timeout = timeout or settings.upstream_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self._client_id and self._client_secret)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def build_payload(self, script: str, language: str, stdin: str = "") -> dict[str, Any]:
        """Combine caller input with server-held credentials and the fixed version."""
        return {
            "clientId": self._client_id,
            "clientSecret": self._client_secret,
            "script": script,
            "language": language,
            "versionIndex": self.version_index,
            "stdin": stdin,
        }

    async def execute(self, script: str, language: str, stdin: str = "") -> httpx.Response:
        """Send one execute request. Single attempt."""
        client = await self._get_client()
        response = await client.post(self.url, json=self.build_payload(script, language, stdin))
        # Never log the payload: it carries the credentials
        logger.debug(
            "jdoodle_response",
            language=language,
            script_len=len(script),
            status=response.status_code,
        )
        return response
