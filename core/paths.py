# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Solace Paths — single source of truth for all data file locations.

Resolution order:
  1. SOLACE_DATA_DIR environment variable
  2. Default: ~/.solace/

Usage:
    from core.paths import get_paths
    p = get_paths()
    p.analytics_db      # ~/.solace/solace-analytics.db
    p.activity_db       # ~/.solace/solace-activity.db
    p.triggers_file     # ~/.solace/solace-triggers.json

For tests:
    from core.paths import configure
    configure(tmp_path)  # all paths now rooted under tmp_path
"""

import os
from pathlib import Path
from typing import Optional


class SolacePaths:
    """Central registry of every file and directory the engine uses."""

    def __init__(self, data_dir: Optional[Path] = None):
        if data_dir is not None:
            self._root = Path(data_dir)
        else:
            env = os.environ.get("SOLACE_DATA_DIR")
            if env:
                self._root = Path(env).expanduser()
            else:
                self._root = Path.home() / ".solace"

    # ------------------------------------------------------------------
    # Root
    # ------------------------------------------------------------------
    @property
    def data_dir(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------
    @property
    def activity_db(self) -> Path:
        """Append-only activity log (mood, journal, exercise)."""
        return self._root / "solace-activity.db"

    @property
    def analytics_db(self) -> Path:
        """Streak states, protection usages, badge awards."""
        return self._root / "solace-analytics.db"

    # ------------------------------------------------------------------
    # State files
    # ------------------------------------------------------------------
    @property
    def triggers_file(self) -> Path:
        return self._root / "solace-triggers.json"

    @property
    def config_file(self) -> Path:
        return self._root / "solace-config.json"

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------
    @property
    def logs_dir(self) -> Path:
        return self._root / "logs"

    @property
    def log_file(self) -> Path:
        return self.logs_dir / "solace.log"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def ensure_dirs(self) -> None:
        """Create the data directory tree if missing."""
        for d in (self._root, self.logs_dir):
            d.mkdir(parents=True, exist_ok=True)


# ===========================================================================
# Singleton
# ===========================================================================

_instance: Optional[SolacePaths] = None


def get_paths() -> SolacePaths:
    """Return the global SolacePaths singleton (lazy-init)."""
    global _instance
    if _instance is None:
        _instance = SolacePaths()
    return _instance


def configure(data_dir: Path) -> SolacePaths:
    """
    Override the global paths singleton. Used by tests and embedding apps.

    Returns the new instance for convenience.
    """
    global _instance
    _instance = SolacePaths(data_dir=data_dir)
    return _instance


def reset() -> None:
    """Reset singleton so next get_paths() re-reads env."""
    global _instance
    _instance = None
