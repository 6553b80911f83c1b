import socket

import paramiko
import pytest

from nodeconfig.agent.ssh import SSHRemoteAgent, load_private_key
from nodeconfig.config.models import AgentCommands, InstanceIdentity, NodeConfigSettings, PlatformType
from nodeconfig.errors import RemoteAgentError

ENDPOINT = "https://api-int.test.example.com:22623/config/worker"


class FakeRunner:
    def __init__(self):
        self.commands = []
        self.uploads = []
        self.results = {}
        self.closed = False

    def run(self, cmd, *, timeout=None):
        self.commands.append(cmd)
        for needle, result in self.results.items():
            if needle in cmd:
                return result
        return 0, "ok", ""

    def put_file(self, local_path, remote_path):
        self.uploads.append((str(local_path), remote_path))

    def close(self):
        self.closed = True


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def connects():
    return []


@pytest.fixture
def ssh_agent(runner, connects):
    identity = InstanceIdentity(
        instance_id="i-0abc", ip_address="10.0.12.7", machine_name="win-a", platform=PlatformType.AWS
    )
    settings = NodeConfigSettings(
        service_cidr="172.30.0.0/16",
        vxlan_port="9898",
        ssh_port=2222,
        agent=AgentCommands(
            configure="init --endpoint {ignition_endpoint} --vxlan {vxlan_port} --platform {platform}",
            hybrid_overlay="overlay --node {node_name} --vxlan {vxlan_port}",
            cni="cni --dir {remote_cni_dir} --config {config_path}",
            kube_proxy="proxy --node {node_name} --subnet {host_subnet}",
        ),
    )

    def connect(address, username, pkey, *, port, connect_timeout):
        connects.append((address, username, port))
        return runner

    return SSHRemoteAgent(identity, object(), ENDPOINT, settings, connect=connect)


def test_commands_are_rendered_from_settings(ssh_agent, runner, connects):
    ssh_agent.configure()
    ssh_agent.configure_hybrid_overlay("win-node-1")
    ssh_agent.configure_kube_proxy("win-node-1", "10.132.4.0/24")

    assert runner.commands == [
        f"init --endpoint {ENDPOINT} --vxlan 9898 --platform AWS",
        "overlay --node win-node-1 --vxlan 9898",
        "proxy --node win-node-1 --subnet 10.132.4.0/24",
    ]
    # one connection, reused
    assert connects == [("10.0.12.7", "Administrator", 2222)]


def test_cni_config_is_uploaded_before_running(ssh_agent, runner, tmp_path):
    local = tmp_path / "cni-x.conf"
    local.write_text("{}")

    ssh_agent.configure_cni(str(local))

    assert runner.uploads == [(str(local), "C:\\k\\cni\\config\\cni.conf")]
    assert runner.commands == ["cni --dir C:\\k\\cni\\config --config C:\\k\\cni\\config\\cni.conf"]


def test_nonzero_exit_is_an_agent_error(ssh_agent, runner):
    runner.results["overlay"] = (1, "", "hybrid-overlay-node.exe not found\r\n")
    with pytest.raises(RemoteAgentError) as ei:
        ssh_agent.configure_hybrid_overlay("win-node-1")
    assert "exited 1" in str(ei.value)
    assert "hybrid-overlay-node.exe not found" in str(ei.value)


def test_connection_failure_is_an_agent_error(runner):
    identity = InstanceIdentity(instance_id="i-1", ip_address="10.0.0.1", machine_name="m")

    def connect(*a, **kw):
        raise socket.timeout("timed out")

    agent = SSHRemoteAgent(identity, object(), ENDPOINT, NodeConfigSettings(service_cidr="10.0.0.0/16"), connect=connect)
    with pytest.raises(RemoteAgentError) as ei:
        agent.configure()
    assert "unable to connect to 10.0.0.1" in str(ei.value)


def test_close_drops_the_connection(ssh_agent, runner, connects):
    ssh_agent.configure()
    ssh_agent.close()
    assert runner.closed
    ssh_agent.configure()
    assert len(connects) == 2


def test_id_is_the_instance_id(ssh_agent):
    assert ssh_agent.id() == "i-0abc"


# ----------------- keys -----------------

def test_load_private_key_reads_rsa(tmp_path):
    key = paramiko.RSAKey.generate(1024)
    path = tmp_path / "id_rsa"
    key.write_private_key_file(str(path))
    assert load_private_key(path).get_base64() == key.get_base64()


def test_load_private_key_missing_file(tmp_path):
    with pytest.raises(RemoteAgentError):
        load_private_key(tmp_path / "nope")


def test_load_private_key_garbage(tmp_path):
    path = tmp_path / "junk"
    path.write_text("not a key")
    with pytest.raises(RemoteAgentError) as ei:
        load_private_key(path)
    assert "Unsupported private key format" in str(ei.value)
