# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/node_config.py
from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional

import paramiko
from kubernetes.client import V1Node
from kubernetes.client.rest import ApiException

from nodeconfig import version
from nodeconfig.agent.interface import RemoteAgent
from nodeconfig.agent.ssh import ssh_agent_factory
from nodeconfig.cluster.client import ClusterClient
from nodeconfig.cluster.endpoint import ENDPOINT_CACHE, EndpointCache, resolve_worker_ignition_endpoint
from nodeconfig.cluster.nodes import find_node
from nodeconfig.config.models import InstanceIdentity, NodeConfigSettings
from nodeconfig.constants import PUB_KEY_HASH_ANNOTATION, VERSION_ANNOTATION
from nodeconfig.crypto.fingerprint import public_key_hash
from nodeconfig.errors import (
    ConfigureError,
    DiscoveryError,
    NodeConfigError,
    NodeUpdateError,
    RemoteAgentError,
    UpdateConflictError,
    ValidationError,
)
from nodeconfig.network.cni import CNIConfigMaterializer
from nodeconfig.network.network import Network
from nodeconfig.network.orchestrator import NetworkConfigurator, call_agent
from nodeconfig.observers.dispatcher import EventBus
from nodeconfig.observers.events import (
    NodeConfigFailed,
    NodeConfigStarted,
    NodeConfigured,
    NodeDiscovered,
    new_ctx,
)

log = logging.getLogger("nodeconfig")

AgentFactory = Callable[[InstanceIdentity, paramiko.PKey, str, NodeConfigSettings], RemoteAgent]


class NodeConfig:
    """
    Turns one provisioned instance into a configured worker node.

    Construction checks the prerequisites (service CIDR, worker ignition
    endpoint), builds the remote agent handle and hashes the instance's public
    key. ``configure()`` then runs: instance configure -> node discovery ->
    network configuration -> version / key-hash annotations.
    """

    def __init__(
        self,
        cluster: ClusterClient,
        identity: InstanceIdentity,
        signer: paramiko.PKey,
        settings: NodeConfigSettings,
        *,
        agent_factory: AgentFactory = ssh_agent_factory,
        cache: EndpointCache = ENDPOINT_CACHE,
        cni: Optional[CNIConfigMaterializer] = None,
        observers: Optional[List] = None,
    ):
        self.cluster = cluster
        self.identity = identity
        self.settings = settings

        try:
            self.network = Network(service_cidr=settings.service_cidr, vxlan_port=settings.vxlan_port)
        except ValidationError as e:
            raise ValidationError(f"error receiving valid CIDR value for creating new node config: {e}") from e

        try:
            self.ignition_endpoint = resolve_worker_ignition_endpoint(cluster.custom, cache)
        except ValidationError as e:
            raise ValidationError(f"error getting cluster address: {e}") from e
        except DiscoveryError as e:
            raise DiscoveryError(f"unable to find kube api server endpoint: {e}") from e

        try:
            self.agent = agent_factory(identity, signer, self.ignition_endpoint, settings)
        except NodeConfigError:
            raise
        except Exception as e:
            raise RemoteAgentError(f"error instantiating agent for instance {identity.instance_id}: {e}") from e

        self.public_key_hash = public_key_hash(signer)
        self.cni = cni or CNIConfigMaterializer(settings.cni_template_path)
        self.bus = EventBus(observers or [])
        self.node: Optional[V1Node] = None

    def id(self) -> str:
        return self.agent.id()

    @property
    def core(self):
        return self.cluster.core

    # ------------------ phases ------------------

    def _phase(self, name: str, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except Exception as e:
            raise ConfigureError(name, self.id(), e) from e

    def _find_node(self) -> V1Node:
        return find_node(
            self.core,
            self.id(),
            label_selector=self.settings.node_label_selector,
            poll=self.settings.node_poll,
        )

    def _configure_network(self, run_ctx: dict) -> V1Node:
        return NetworkConfigurator(
            self.core,
            self.agent,
            self.node,
            self.network,
            self.cni,
            poll=self.settings.annotation_poll,
            bus=self.bus,
            run_ctx=run_ctx,
        ).run()

    def _finalize(self) -> V1Node:
        """
        Re-read the node and commit the version and public key hash
        annotations in a single update. A 409 is not retried here.
        """
        node = self._find_node()
        name = node.metadata.name
        annotations = dict(node.metadata.annotations or {})
        annotations[VERSION_ANNOTATION] = version.get()
        annotations[PUB_KEY_HASH_ANNOTATION] = self.public_key_hash
        node.metadata.annotations = annotations

        try:
            return self.core.replace_node(name, node)
        except ApiException as e:
            if e.status == 409:
                raise UpdateConflictError(f"node {name} changed before annotations could be committed") from e
            raise NodeUpdateError(f"error updating node {name} annotations: {e.reason}") from e

    # ------------------ public API ------------------

    def configure(self) -> V1Node:
        run_ctx = new_ctx(self.id())
        start = time.monotonic()
        self.bus.emit(NodeConfigStarted(ip_address=self.identity.ip_address, **run_ctx))
        log.info("[%s] configuring instance at %s", self.id(), self.identity.ip_address)

        try:
            self._phase("configuring the instance", lambda: call_agent("configure", self.agent.configure))

            self.node = self._phase("getting node object", self._find_node)
            self.bus.emit(NodeDiscovered(node_name=self.node.metadata.name, **run_ctx))

            self.node = self._phase("configuring node network", lambda: self._configure_network(run_ctx))

            self.node = self._phase("updating node annotations", self._finalize)
        except ConfigureError as e:
            log.error("[%s] %s", self.id(), e)
            self.bus.emit(NodeConfigFailed(phase=e.phase, error=str(e), **run_ctx))
            raise

        self.bus.emit(
            NodeConfigured(
                node_name=self.node.metadata.name,
                version=self.node.metadata.annotations[VERSION_ANNOTATION],
                duration_ms=int((time.monotonic() - start) * 1000),
                **run_ctx,
            )
        )
        log.info("[%s] node %s configured", self.id(), self.node.metadata.name)
        return self.node

    def close(self) -> None:
        close = getattr(self.agent, "close", None)
        if close is not None:
            close()
