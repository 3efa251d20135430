"""Integration-test conftest — talks to a relay started separately.

Integration tests require:
    DEVRATE_TEST_INTEGRATION=1   (set in shell before running)
    A relay on DEVRATE_RELAY_URL (default http://localhost:5173), e.g. `devrate serve`

Run with:
    DEVRATE_TEST_INTEGRATION=1 pytest tests/integration/ -v
"""

from __future__ import annotations

import os
import pytest


pytestmark = pytest.mark.skipif(
    not os.getenv("DEVRATE_TEST_INTEGRATION"),
    reason="Set DEVRATE_TEST_INTEGRATION=1 to run integration tests",
)
