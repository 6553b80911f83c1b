# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/cluster/nodes.py
from __future__ import annotations

import logging
from typing import Optional

from kubernetes.client import V1Node
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from nodeconfig.config.models import PollSettings
from nodeconfig.constants import WINDOWS_OS_LABEL
from nodeconfig.errors import AnnotationTimeoutError, NodeNotFoundError, PollTimeoutError
from nodeconfig.utils.retry import poll_until

log = logging.getLogger("nodeconfig")

# API errors and dropped connections; polling carries on through both
TRANSIENT_API_ERRORS = (ApiException, HTTPError, OSError)


def instance_id_from_provider_id(provider_id: str) -> str:
    """
    aws:///us-east-1e/i-078285fdadccb2eaa -> i-078285fdadccb2eaa
    The instance ID is always the last path segment.
    """
    return provider_id.split("/")[-1]


def node_annotations(node: V1Node) -> dict:
    return (node.metadata.annotations if node.metadata else None) or {}


def find_node(
    core_api,
    instance_id: str,
    *,
    label_selector: str = WINDOWS_OS_LABEL,
    poll: Optional[PollSettings] = None,
) -> V1Node:
    """
    Poll the labelled node list until a node whose providerID ends with
    ``instance_id`` shows up.
    """
    poll = poll or PollSettings()
    found: list[V1Node] = []

    def _check() -> bool:
        nodes = core_api.list_node(label_selector=label_selector).items or []
        if not nodes:
            log.debug("[nodes] expected non-empty node list for selector %s", label_selector)
            return False

        matches = [
            n for n in nodes
            if n.spec is not None
            and n.spec.provider_id
            and instance_id_from_provider_id(n.spec.provider_id) == instance_id
        ]
        if not matches:
            log.debug("[nodes] no match for instance %s among %d node(s)", instance_id, len(nodes))
            return False
        if len(matches) > 1:
            log.warning(
                "[nodes] %d nodes share instance %s, using %s",
                len(matches), instance_id, matches[0].metadata.name,
            )
        found.append(matches[0])
        return True

    try:
        poll_until(
            _check,
            interval=poll.interval_seconds,
            timeout=poll.timeout_seconds,
            description=f"node for instance {instance_id}",
            transient=TRANSIENT_API_ERRORS,
        )
    except PollTimeoutError as e:
        raise NodeNotFoundError(instance_id, e.timeout, e.last_error) from e

    node = found[0]
    log.info("[nodes] instance %s is node %s", instance_id, node.metadata.name)
    return node


def wait_for_node_annotation(
    core_api,
    node_name: str,
    annotation: str,
    *,
    poll: Optional[PollSettings] = None,
) -> V1Node:
    """
    Re-read the node until ``annotation`` is present and return that fresh copy.
    """
    poll = poll or PollSettings()
    fresh: list[V1Node] = []

    def _check() -> bool:
        node = core_api.read_node(node_name)
        if annotation in node_annotations(node):
            fresh.append(node)
            return True
        return False

    try:
        poll_until(
            _check,
            interval=poll.interval_seconds,
            timeout=poll.timeout_seconds,
            description=f"{annotation} annotation on node {node_name}",
            transient=TRANSIENT_API_ERRORS,
        )
    except PollTimeoutError as e:
        raise AnnotationTimeoutError(annotation, node_name, e.timeout, e.last_error) from e

    log.info("[nodes] node %s has annotation %s", node_name, annotation)
    return fresh[-1]
