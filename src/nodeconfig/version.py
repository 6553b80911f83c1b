# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/version.py
from __future__ import annotations

import os
from importlib import metadata

DIST_NAME = "nodeconfig"
UNKNOWN = "0.0.0+unknown"


def get() -> str:
    """
    Version stamped onto configured nodes.
    NODECONFIG_VERSION wins over the installed distribution metadata.
    """
    override = os.getenv("NODECONFIG_VERSION")
    if override:
        return override
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return UNKNOWN
