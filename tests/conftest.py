from pathlib import Path
from typing import Dict, List, Optional

import pytest
from kubernetes.client import V1Node, V1NodeList, V1NodeSpec, V1ObjectMeta
from kubernetes.client.rest import ApiException

from nodeconfig.cluster.endpoint import ENDPOINT_CACHE
from nodeconfig.config.models import PollSettings

# ----------------- Fakes for the Kubernetes APIs -----------------

class FakeCoreV1Api:
    """
    In-memory node store. Every read builds a fresh V1Node so callers never
    share objects with the store. replace_node enforces resourceVersion.
    """

    def __init__(self):
        self.state: Dict[str, dict] = {}
        self.calls: List[tuple] = []
        self.list_errors: List[Exception] = []
        self.read_errors: List[Exception] = []
        self.replace_error: Optional[Exception] = None
        self._pending: Dict[str, List[tuple]] = {}
        self._reads: Dict[str, int] = {}

    def add_node(self, name, provider_id, annotations=None, labels=None):
        self.state[name] = {
            "provider_id": provider_id,
            "annotations": dict(annotations or {}),
            "labels": dict(labels or {"node.openshift.io/os_id": "Windows"}),
            "rv": 1,
        }

    def annotate_after(self, name, key, value, reads):
        """Make ``key`` appear once ``name`` has been read ``reads`` times."""
        self._pending.setdefault(name, []).append((reads, key, value))

    def annotate(self, name, key, value):
        self.state[name]["annotations"][key] = value
        self.state[name]["rv"] += 1

    def _build(self, name) -> V1Node:
        s = self.state[name]
        return V1Node(
            metadata=V1ObjectMeta(
                name=name,
                annotations=dict(s["annotations"]) or None,
                labels=dict(s["labels"]),
                resource_version=str(s["rv"]),
            ),
            spec=V1NodeSpec(provider_id=s["provider_id"]),
        )

    def list_node(self, label_selector=None):
        self.calls.append(("list_node", label_selector))
        if self.list_errors:
            raise self.list_errors.pop(0)
        return V1NodeList(items=[self._build(n) for n in self.state])

    def read_node(self, name):
        self.calls.append(("read_node", name))
        if self.read_errors:
            raise self.read_errors.pop(0)
        if name not in self.state:
            raise ApiException(status=404, reason="Not Found")
        self._reads[name] = self._reads.get(name, 0) + 1
        for reads, key, value in list(self._pending.get(name, [])):
            if self._reads[name] > reads:
                self.annotate(name, key, value)
                self._pending[name].remove((reads, key, value))
        return self._build(name)

    def replace_node(self, name, body):
        self.calls.append(("replace_node", name))
        if self.replace_error is not None:
            raise self.replace_error
        s = self.state[name]
        if body.metadata.resource_version != str(s["rv"]):
            raise ApiException(status=409, reason="Conflict")
        s["annotations"] = dict(body.metadata.annotations or {})
        s["rv"] += 1
        return self._build(name)

    def reads(self, name) -> int:
        return self._reads.get(name, 0)


class FakeCustomObjectsApi:
    def __init__(self, url="https://api-int.test.example.com:6443"):
        self.url = url
        self.error: Optional[Exception] = None
        self.calls = 0

    def get_cluster_custom_object(self, group, version, plural, name):
        self.calls += 1
        if self.error is not None:
            raise self.error
        status = {"apiServerInternalURL": self.url} if self.url else {}
        return {"apiVersion": f"{group}/{version}", "kind": "Infrastructure",
                "metadata": {"name": name}, "status": status}


# ----------------- Fake remote agent -----------------

class FakeAgent:
    def __init__(self, instance_id="i-0abc"):
        self.instance_id = instance_id
        self.calls: List[tuple] = []
        self.fail_on: Optional[str] = None
        self.error: Exception = RuntimeError("agent exploded")
        self.hooks = {}
        self.cni_content: Optional[str] = None
        self.cni_path: Optional[str] = None
        self.closed = False

    def _record(self, op, *args):
        self.calls.append((op,) + args)
        if op in self.hooks:
            self.hooks[op](*args)
        if op == self.fail_on:
            raise self.error

    def ops(self):
        return [c[0] for c in self.calls]

    def id(self):
        return self.instance_id

    def configure(self):
        self._record("configure")

    def configure_hybrid_overlay(self, node_name):
        self._record("configure_hybrid_overlay", node_name)

    def configure_cni(self, config_path):
        self.cni_path = config_path
        self.cni_content = Path(config_path).read_text()
        self._record("configure_cni", config_path)

    def configure_kube_proxy(self, node_name, host_subnet):
        self._record("configure_kube_proxy", node_name, host_subnet)

    def close(self):
        self.closed = True


# ----------------- Fixtures -----------------

@pytest.fixture(autouse=True)
def _reset_endpoint_cache():
    ENDPOINT_CACHE.reset()
    yield
    ENDPOINT_CACHE.reset()


@pytest.fixture
def core():
    return FakeCoreV1Api()


@pytest.fixture
def custom():
    return FakeCustomObjectsApi()


@pytest.fixture
def agent():
    return FakeAgent()


@pytest.fixture
def fast_poll():
    return PollSettings(interval_seconds=0.001, timeout_seconds=5.0)


@pytest.fixture
def short_poll():
    return PollSettings(interval_seconds=0.001, timeout_seconds=0.05)


@pytest.fixture
def cni_template(tmp_path: Path) -> Path:
    p = tmp_path / "templates" / "cni.conf.j2"
    p.parent.mkdir()
    p.write_text('{"subnet": "{{ host_subnet }}", "exceptions": ["{{ service_network_cidr }}"]}\n')
    return p


@pytest.fixture
def agent_cls():
    return FakeAgent
