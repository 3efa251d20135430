"""E2E conftest — requires real JDoodle credentials.

E2E tests send real programs through the relay to the compiler service:
    - JDOODLE_CLIENT_ID / JDOODLE_CLIENT_SECRET in the environment (or .env)
    - Outbound HTTPS to api.jdoodle.com

Run with:
    DEVRATE_TEST_E2E=1 pytest tests/e2e/ -v
"""

from __future__ import annotations

import os
import pytest


pytestmark = pytest.mark.skipif(
    not os.getenv("DEVRATE_TEST_E2E"),
    reason="Set DEVRATE_TEST_E2E=1 to run end-to-end tests",
)
