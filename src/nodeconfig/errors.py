# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/errors.py
from __future__ import annotations

from typing import Optional


class NodeConfigError(RuntimeError):
    """Base class for node bootstrap failures."""


class ValidationError(NodeConfigError):
    """Malformed input (CIDR, endpoint URL, hostname shape). Never retried."""


class DiscoveryError(NodeConfigError):
    """The cluster infrastructure descriptor is missing an expected field."""


class PollTimeoutError(NodeConfigError, TimeoutError):
    """A bounded poll expired before its condition was met."""

    def __init__(self, description: str, timeout: float, last_error: Optional[BaseException] = None):
        self.description = description
        self.timeout = timeout
        self.last_error = last_error
        msg = f"timed out after {timeout:g}s waiting for {description}"
        if last_error is not None:
            msg += f" (last error: {last_error})"
        super().__init__(msg)


class NodeNotFoundError(PollTimeoutError):
    def __init__(self, instance_id: str, timeout: float, last_error: Optional[BaseException] = None):
        self.instance_id = instance_id
        super().__init__(f"node for instance {instance_id}", timeout, last_error)


class AnnotationTimeoutError(PollTimeoutError):
    def __init__(self, annotation: str, node_name: str, timeout: float, last_error: Optional[BaseException] = None):
        self.annotation = annotation
        self.node_name = node_name
        super().__init__(f"{annotation} annotation on node {node_name}", timeout, last_error)


class RemoteAgentError(NodeConfigError):
    """Opaque failure reported by the remote configuration agent."""


class CNIConfigError(NodeConfigError):
    """The CNI config artifact could not be rendered or written."""


class NodeUpdateError(NodeConfigError):
    """The cluster rejected the node update."""


class UpdateConflictError(NodeUpdateError):
    """The node changed between fetch and commit (HTTP 409)."""


class NetworkStepError(NodeConfigError):
    def __init__(self, step: str, node_name: str, error: BaseException):
        self.step = step
        self.node_name = node_name
        super().__init__(f"network step {step} failed for node {node_name}: {error}")


class ConfigureError(NodeConfigError):
    def __init__(self, phase: str, instance_id: str, error: BaseException):
        self.phase = phase
        self.instance_id = instance_id
        super().__init__(f"{phase} failed for instance {instance_id}: {error}")


def root_cause(exc: BaseException) -> BaseException:
    """Follow the ``__cause__`` chain down to the original exception."""
    while exc.__cause__ is not None:
        exc = exc.__cause__
    return exc
