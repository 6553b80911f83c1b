# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/cluster/endpoint.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional
from urllib.parse import urlparse

from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from nodeconfig.constants import (
    API_INT_PREFIX,
    IGNITION_PATH,
    IGNITION_PORT,
    INFRA_GROUP,
    INFRA_NAME,
    INFRA_PLURAL,
    INFRA_VERSION,
)
from nodeconfig.errors import DiscoveryError, ValidationError

log = logging.getLogger("nodeconfig")


def discover_api_server_internal_url(custom_api) -> str:
    """
    Read status.apiServerInternalURL from the cluster infrastructure object,
    e.g. https://api-int.abc.devcluster.openshift.com:6443
    """
    try:
        infra = custom_api.get_cluster_custom_object(
            INFRA_GROUP, INFRA_VERSION, INFRA_PLURAL, INFRA_NAME
        )
    except (ApiException, HTTPError, OSError) as e:
        raise DiscoveryError(
            f"unable to get cluster infrastructure resource {INFRA_PLURAL}.{INFRA_GROUP}/{INFRA_NAME}: {e}"
        ) from e

    url = ((infra or {}).get("status") or {}).get("apiServerInternalURL")
    if not url:
        raise DiscoveryError("could not get host name for the kubernetes api server")
    return url


def get_cluster_addr(api_server_url: str) -> str:
    """
    https://api-int.abc.devcluster.openshift.com:6443 -> api-int.abc.devcluster.openshift.com
    """
    try:
        host = urlparse(api_server_url).hostname
    except ValueError as e:
        raise ValidationError(f"unable to parse the kubernetes API server endpoint {api_server_url!r}") from e

    if not host:
        raise ValidationError(f"unable to parse the kubernetes API server endpoint {api_server_url!r}")
    if not host.startswith(API_INT_PREFIX):
        raise ValidationError(
            f"invalid API server url {host}: expected hostname to start with `{API_INT_PREFIX}`"
        )
    return host


def worker_ignition_endpoint(cluster_addr: str) -> str:
    return f"https://{cluster_addr}:{IGNITION_PORT}{IGNITION_PATH}"


class EndpointCache:
    """
    Write-once cache for the worker ignition endpoint.

    The first successful resolution wins and is kept for the life of the
    process. Resolution runs under a lock, so concurrent first callers trigger
    a single discovery; a failed resolution leaves the cache empty.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._value: Optional[str] = None

    @property
    def value(self) -> Optional[str]:
        return self._value

    def get_or_resolve(self, resolve: Callable[[], str]) -> str:
        if self._value is not None:
            return self._value
        with self._lock:
            if self._value is None:
                self._value = resolve()
                log.info("[endpoint] cached worker ignition endpoint %s", self._value)
            return self._value

    def reset(self) -> None:
        # tests only
        with self._lock:
            self._value = None


ENDPOINT_CACHE = EndpointCache()


def resolve_worker_ignition_endpoint(custom_api, cache: EndpointCache = ENDPOINT_CACHE) -> str:
    def _resolve() -> str:
        url = discover_api_server_internal_url(custom_api)
        return worker_ignition_endpoint(get_cluster_addr(url))

    return cache.get_or_resolve(_resolve)
