# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/bootstrap.py
from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import paramiko

from nodeconfig.agent.ssh import load_private_key, ssh_agent_factory
from nodeconfig.cluster.client import ClusterClient
from nodeconfig.config.models import InstanceSpec, NodeConfigSettings
from nodeconfig.errors import NodeConfigError
from nodeconfig.node_config import AgentFactory, NodeConfig

log = logging.getLogger("nodeconfig")


@dataclass
class InstanceResult:
    instance_id: str
    node_name: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BootstrapReport:
    results: List[InstanceResult] = field(default_factory=list)

    @property
    def failed(self) -> List[InstanceResult]:
        return [r for r in self.results if not r.ok]

    def summary(self) -> str:
        ok = len(self.results) - len(self.failed)
        return f"OK={ok} FAILED={len(self.failed)}"


def configure_instances(
    cluster: ClusterClient,
    instances: List[InstanceSpec],
    settings: NodeConfigSettings,
    *,
    max_workers: int = 4,
    agent_factory: AgentFactory = ssh_agent_factory,
    key_loader: Callable[[str], paramiko.PKey] = load_private_key,
    observers: Optional[List] = None,
) -> BootstrapReport:
    """
    Bootstrap each instance on its own worker thread. A failing instance is
    recorded in the report and does not stop the others.
    """

    def _one(spec: InstanceSpec) -> str:
        signer = key_loader(spec.private_key_path)
        nc = NodeConfig(
            cluster,
            spec.identity(),
            signer,
            settings,
            agent_factory=agent_factory,
            observers=observers,
        )
        try:
            return nc.configure().metadata.name
        finally:
            nc.close()

    report = BootstrapReport()
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="nodeconfig") as pool:
        futures = {pool.submit(_one, spec): spec for spec in instances}
        for fut in concurrent.futures.as_completed(futures):
            spec = futures[fut]
            try:
                node_name = fut.result()
            except NodeConfigError as e:
                log.error("[%s] bootstrap failed: %s", spec.instance_id, e)
                report.results.append(InstanceResult(instance_id=spec.instance_id, error=str(e)))
            except Exception as e:
                log.exception("[%s] bootstrap failed unexpectedly", spec.instance_id)
                error = f"{type(e).__name__}: {e}"
                report.results.append(InstanceResult(instance_id=spec.instance_id, error=error))
            else:
                report.results.append(InstanceResult(instance_id=spec.instance_id, node_name=node_name))

    log.info("bootstrap finished: %s", report.summary())
    return report
