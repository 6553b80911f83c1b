# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/network/orchestrator.py
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from kubernetes.client import V1Node

from nodeconfig.agent.interface import RemoteAgent
from nodeconfig.cluster.nodes import node_annotations, wait_for_node_annotation
from nodeconfig.config.models import PollSettings
from nodeconfig.constants import HYBRID_OVERLAY_MAC, HYBRID_OVERLAY_SUBNET
from nodeconfig.errors import NetworkStepError, RemoteAgentError
from nodeconfig.observers.dispatcher import EventBus
from nodeconfig.observers.events import AnnotationObserved, NetworkStepCompleted, new_ctx

from .cni import CNIConfigMaterializer
from .network import Network

log = logging.getLogger("nodeconfig")


class NetworkStep(str, Enum):
    AWAIT_SUBNET = "AwaitSubnet"
    CONFIGURE_OVERLAY = "ConfigureOverlay"
    AWAIT_MAC = "AwaitMac"
    CONFIGURE_CNI = "ConfigureCNI"
    CONFIGURE_PROXY = "ConfigureProxy"
    DONE = "Done"


def call_agent(what: str, fn: Callable[..., Any], *args: Any) -> Any:
    """Run an agent capability; anything it raises surfaces as RemoteAgentError."""
    try:
        return fn(*args)
    except RemoteAgentError:
        raise
    except Exception as e:
        raise RemoteAgentError(f"{what} failed: {e}") from e


class NetworkConfigurator:
    """
    Hybrid overlay -> CNI -> kube-proxy, gated on the annotations the network
    operator and the hybrid overlay write onto the node.

    Strictly sequential; the first failing step aborts the run and is raised
    as NetworkStepError chained to the original error. ``node`` is replaced
    with the fresh copy returned by every annotation wait.
    """

    def __init__(
        self,
        core_api,
        agent: RemoteAgent,
        node: V1Node,
        network: Network,
        cni: CNIConfigMaterializer,
        *,
        poll: Optional[PollSettings] = None,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict[str, Any]] = None,
    ):
        self.core_api = core_api
        self.agent = agent
        self.node = node
        self.network = network
        self.cni = cni
        self.poll = poll or PollSettings()
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or new_ctx(agent.id())

        self._transitions: Dict[NetworkStep, Callable[[], NetworkStep]] = {
            NetworkStep.AWAIT_SUBNET: self._await_subnet,
            NetworkStep.CONFIGURE_OVERLAY: self._configure_overlay,
            NetworkStep.AWAIT_MAC: self._await_mac,
            NetworkStep.CONFIGURE_CNI: self._configure_cni,
            NetworkStep.CONFIGURE_PROXY: self._configure_proxy,
        }

    @property
    def node_name(self) -> str:
        return self.node.metadata.name

    def run(self, start: NetworkStep = NetworkStep.AWAIT_SUBNET) -> V1Node:
        step = start
        while step is not NetworkStep.DONE:
            log.info("[network] %s: %s", self.node_name, step.value)
            try:
                next_step = self._transitions[step]()
            except Exception as e:
                raise NetworkStepError(step.value, self.node_name, e) from e
            self.bus.emit(NetworkStepCompleted(node_name=self.node_name, step=step.value, **self.run_ctx))
            step = next_step
        return self.node

    # ------------------ transitions ------------------

    def _wait_for(self, annotation: str) -> None:
        self.node = wait_for_node_annotation(self.core_api, self.node_name, annotation, poll=self.poll)
        self.bus.emit(
            AnnotationObserved(
                node_name=self.node_name,
                annotation=annotation,
                value=node_annotations(self.node)[annotation],
                **self.run_ctx,
            )
        )

    def _await_subnet(self) -> NetworkStep:
        self._wait_for(HYBRID_OVERLAY_SUBNET)
        return NetworkStep.CONFIGURE_OVERLAY

    def _configure_overlay(self) -> NetworkStep:
        call_agent("configure hybrid overlay", self.agent.configure_hybrid_overlay, self.node_name)
        return NetworkStep.AWAIT_MAC

    def _await_mac(self) -> NetworkStep:
        self._wait_for(HYBRID_OVERLAY_MAC)
        return NetworkStep.CONFIGURE_CNI

    def _configure_cni(self) -> NetworkStep:
        self.network.set_host_subnet(node_annotations(self.node)[HYBRID_OVERLAY_SUBNET])
        with self.cni.materialized(self.network.service_cidr, self.network.host_subnet) as path:
            call_agent("configure CNI", self.agent.configure_cni, str(path))
        return NetworkStep.CONFIGURE_PROXY

    def _configure_proxy(self) -> NetworkStep:
        host_subnet = node_annotations(self.node)[HYBRID_OVERLAY_SUBNET]
        call_agent("start kube-proxy", self.agent.configure_kube_proxy, self.node_name, host_subnet)
        return NetworkStep.DONE
