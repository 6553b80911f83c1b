# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/network/network.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .cidr import validate_cidr


@dataclass
class Network:
    """Per-node network context."""
    service_cidr: str
    vxlan_port: Optional[str] = None
    # filled in once the hybrid overlay subnet annotation appears
    host_subnet: Optional[str] = None

    def __post_init__(self):
        validate_cidr(self.service_cidr)

    def set_host_subnet(self, host_subnet: str) -> None:
        self.host_subnet = validate_cidr(host_subnet)
