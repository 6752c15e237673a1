# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Test configuration: isolated data dir and event bus."""

import pytest

from activity.log import SQLiteActivityLog
from core.paths import configure, reset
from engine.events import bus
from helpers import NOW


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path, monkeypatch):
    """Route all Solace data to a temp directory for test isolation."""
    for var in ("SOLACE_DATA_DIR", "SOLACE_PROTECTION_CAP", "SOLACE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    paths = configure(tmp_path)
    paths.ensure_dirs()
    bus.reset()
    yield paths
    bus.reset()
    reset()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def log(isolated_paths):
    """Fresh SQLite activity log."""
    store = SQLiteActivityLog()
    yield store
    store.close()
