# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/cluster/client.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from kubernetes import client, config

log = logging.getLogger("nodeconfig")


@dataclass
class ClusterClient:
    """
    The two API groups the bootstrapper talks to.
    core: node list/read/replace
    custom: the cluster infrastructure descriptor
    """
    core: client.CoreV1Api
    custom: client.CustomObjectsApi


def load_cluster_client(kubeconfig: Optional[str] = None, kube_context: Optional[str] = None) -> ClusterClient:
    """
    Use the in-cluster service account when no kubeconfig is given and one is
    mounted; otherwise fall back to the kubeconfig file / context.
    """
    if kubeconfig is None and kube_context is None:
        try:
            config.load_incluster_config()
            log.debug("[cluster] using in-cluster configuration")
            return ClusterClient(core=client.CoreV1Api(), custom=client.CustomObjectsApi())
        except config.ConfigException:
            log.debug("[cluster] not running in a cluster, loading kubeconfig")

    config.load_kube_config(config_file=kubeconfig, context=kube_context)
    return ClusterClient(core=client.CoreV1Api(), custom=client.CustomObjectsApi())
