from __future__ import annotations

import pytest

from hrnotify.core.config import get_settings
from hrnotify.services.telemetry import reset_telemetry


@pytest.fixture(autouse=True)
def reset_process_state() -> None:
    # Counters and cached settings are process-wide; isolate them per test.
    reset_telemetry()
    get_settings.cache_clear()
    yield
    reset_telemetry()
    get_settings.cache_clear()
