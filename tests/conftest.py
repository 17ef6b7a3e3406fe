import os
from collections.abc import Callable
from typing import Any

import pytest

from misty.misty_pipeline import execute

# Monkeypatch coverage to bypass teardown crash in act/docker
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    # Nukes the teardown assertion that fails in act
    import coverage.collector

    def safe_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = safe_stop


@pytest.fixture  # type: ignore[misc]
def run_source() -> Callable[[str], str]:
    """Compiles and runs a Misty program in a fresh interpreter, returning its output."""
    return execute
