# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

#src/nodeconfig/logging/log.py

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path

# libraries whose DEBUG output drowns the bootstrap trace
NOISY_LOGGERS = ("paramiko", "kubernetes", "urllib3")


def default_log_dir() -> Path:
    env = os.environ.get("NODECONFIG_LOG_DIR")
    if env:
        return Path(env)
    return Path.home() / ".nodeconfig" / "logs"


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "nodeconfig",
    verbose: bool = False,
) -> tuple[logging.Logger, str, Path]:
    """
    Per-run logging for a bootstrap.

    The run file gets the full DEBUG trace of every instance, tagged with the
    worker thread; the console gets INFO (DEBUG with --debug). Returns the
    logger, the run id and the path of the run file.
    """
    run_id = str(uuid.uuid4())

    base_dir = base_dir or default_log_dir()
    base_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{name}-{ts}-{run_id}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-7s | %(threadName)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    fh = logging.FileHandler(log_path)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(formatter)

    logger.addHandler(fh)
    logger.addHandler(ch)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.DEBUG if verbose else logging.WARNING)

    logger.info("nodeconfig run %s started, trace in %s", run_id, log_path)

    return logger, run_id, log_path
