import sys
from concurrent.futures import Future
from pathlib import Path

import pytest

# Ensure the `directory_search` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from directory_search.core.config import Settings  # noqa: E402


class ImmediateExecutor:
    """Runs submitted callables inline and records them."""

    def __init__(self):
        self.submitted = []

    def submit(self, fn, *args, **kwargs):
        self.submitted.append((fn, args, kwargs))
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:  # noqa: BLE001
            future.set_exception(exc)
        return future


class RecordingSink:
    def __init__(self):
        self.events = []
        self.usage = []

    def log_search(self, event):
        self.events.append(event)

    def record_api_usage(self, provider, endpoint, estimated_cost):
        self.usage.append((provider, endpoint, estimated_cost))


@pytest.fixture
def immediate_executor():
    return ImmediateExecutor()


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def settings():
    return Settings(google_api_key="test-key", database_url="", source_timeout_seconds=2.0)
