"""Root conftest — shared pytest markers and global settings.

Markers
-------
unit        fast, no I/O, pure logic
integration talks to a locally running relay (set DEVRATE_TEST_INTEGRATION=1)
e2e         requires real JDoodle credentials (set DEVRATE_TEST_E2E=1)
slow        expected to take > 5 seconds
"""

from __future__ import annotations

import os
import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast, no I/O tests")
    config.addinivalue_line("markers", "integration: requires a running relay")
    config.addinivalue_line("markers", "e2e: requires live JDoodle credentials")
    config.addinivalue_line("markers", "slow: test is expected to take > 5 s")


# ── Skip guards ───────────────────────────────────────────────────────────────

requires_integration = pytest.mark.skipif(
    not os.getenv("DEVRATE_TEST_INTEGRATION"),
    reason="Set DEVRATE_TEST_INTEGRATION=1 to run integration tests",
)

requires_e2e = pytest.mark.skipif(
    not os.getenv("DEVRATE_TEST_E2E"),
    reason="Set DEVRATE_TEST_E2E=1 to run end-to-end tests",
)
