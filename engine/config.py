# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Engine config and logging setup.

Resolution order for each setting:
  1. Environment (SOLACE_PROTECTION_CAP, SOLACE_LOG_LEVEL)
  2. solace-config.json in the data dir
  3. EngineConfig defaults
"""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError

from core.paths import get_paths
from engine.schemas import SolaceModel, load_validated

logger = logging.getLogger("solace.config")

MONTHLY_CAP = 3

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class EngineConfig(SolaceModel):
    """Everything the engine lets a host app tune."""
    monthly_protection_cap: int = Field(default=MONTHLY_CAP, ge=0)
    streak_window_days: int = Field(default=30, ge=1)
    summary_window_days: int = Field(default=30, ge=1)
    max_insights: int = Field(default=6, ge=0)
    dismissed_history_limit: int = Field(default=50, ge=0)
    log_level: str = "INFO"


def load_config(path: Optional[Path] = None) -> EngineConfig:
    """Load engine config, falling back to defaults."""
    config = load_validated(path or get_paths().config_file, EngineConfig)

    overrides = {}
    cap = os.environ.get("SOLACE_PROTECTION_CAP")
    if cap:
        try:
            overrides["monthly_protection_cap"] = int(cap)
        except ValueError:
            logger.warning("Ignoring non-integer SOLACE_PROTECTION_CAP=%r", cap)
    level = os.environ.get("SOLACE_LOG_LEVEL")
    if level:
        overrides["log_level"] = level.upper()

    if overrides:
        try:
            config = EngineConfig.model_validate({**config.model_dump(), **overrides})
        except ValidationError as e:
            logger.warning("Ignoring invalid environment overrides: %s", e)
    return config


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the `solace` logger to write to the data-dir log file + stderr."""
    paths = get_paths()
    paths.ensure_dirs()
    level = (level or load_config().log_level).upper()

    logger = logging.getLogger("solace")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    fh = logging.FileHandler(str(paths.log_file), mode="a")
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(fh)

    sh = logging.StreamHandler()
    sh.setLevel(logging.WARNING)
    sh.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.addHandler(sh)

    return logger
