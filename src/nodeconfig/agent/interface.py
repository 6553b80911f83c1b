# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
from typing import Protocol


class RemoteAgent(Protocol):
    """Configuration capabilities of the agent running on the instance."""

    def id(self) -> str: ...

    def configure(self) -> None: ...

    def configure_hybrid_overlay(self, node_name: str) -> None: ...

    def configure_cni(self, config_path: str) -> None: ...

    def configure_kube_proxy(self, node_name: str, host_subnet: str) -> None: ...
