# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/constants.py

# Applied by the cluster network operator; the hybrid overlay cannot start without it
HYBRID_OVERLAY_SUBNET = "k8s.ovn.org/hybrid-overlay-node-subnet"
# Applied by the hybrid overlay itself; required before CNI can be configured
HYBRID_OVERLAY_MAC = "k8s.ovn.org/hybrid-overlay-distributed-router-gateway-mac"

# Label selector for nodes bootstrapped by this tool
WINDOWS_OS_LABEL = "node.openshift.io/os_id=Windows"

VERSION_ANNOTATION = "windowsmachineconfig.openshift.io/version"
PUB_KEY_HASH_ANNOTATION = "windowsmachineconfig.openshift.io/pub-key-hash"

# Machine config server that serves worker ignition
API_INT_PREFIX = "api-int."
IGNITION_PORT = 22623
IGNITION_PATH = "/config/worker"

# cluster-scoped infrastructure descriptor
INFRA_GROUP = "config.openshift.io"
INFRA_VERSION = "v1"
INFRA_PLURAL = "infrastructures"
INFRA_NAME = "cluster"
