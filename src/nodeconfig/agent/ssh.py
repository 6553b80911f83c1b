# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/agent/ssh.py
from __future__ import annotations

import logging
import ntpath
import socket
from pathlib import Path
from typing import Callable, Optional

import paramiko

from nodeconfig.config.models import InstanceIdentity, NodeConfigSettings
from nodeconfig.errors import RemoteAgentError

log = logging.getLogger("nodeconfig")


def load_private_key(path: str | Path) -> paramiko.PKey:
    if not Path(path).is_file():
        raise RemoteAgentError(f"private key {path} does not exist")
    last_exc: Optional[Exception] = None
    for key_cls in (
        paramiko.RSAKey,
        paramiko.Ed25519Key,
        paramiko.ECDSAKey,
    ):
        try:
            return key_cls.from_private_key_file(str(path))
        except paramiko.SSHException as e:
            last_exc = e
            continue
    raise RemoteAgentError(f"Unsupported private key format for {path}: {last_exc}")


class SSHRunner:
    def __init__(self, client: paramiko.SSHClient):
        self.client = client

    def run(self, cmd: str, *, timeout: Optional[float] = None) -> tuple[int, str, str]:
        stdin, stdout, stderr = self.client.exec_command(cmd, timeout=timeout)
        out = stdout.read().decode("utf-8", errors="replace")
        err = stderr.read().decode("utf-8", errors="replace")
        rc = stdout.channel.recv_exit_status()
        return rc, out, err

    def put_file(self, local_path: str | Path, remote_path: str) -> None:
        sftp = self.client.open_sftp()
        try:
            sftp.put(str(local_path), remote_path)
        finally:
            sftp.close()

    def close(self) -> None:
        self.client.close()


def open_ssh(
    address: str,
    username: str,
    pkey: paramiko.PKey,
    *,
    port: int = 22,
    connect_timeout: float = 30.0,
) -> SSHRunner:
    client = paramiko.SSHClient()
    client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
    client.connect(
        hostname=address,
        port=port,
        username=username,
        pkey=pkey,
        password=None,
        look_for_keys=False,
        allow_agent=False,
        timeout=connect_timeout,
    )
    return SSHRunner(client)


class SSHRemoteAgent:
    """
    Drives the instance over SSH: files go up over SFTP, each capability is a
    templated remote command from ``settings.agent``. A non-zero exit status
    is a RemoteAgentError.
    """

    def __init__(
        self,
        identity: InstanceIdentity,
        signer: paramiko.PKey,
        ignition_endpoint: str,
        settings: NodeConfigSettings,
        connect: Callable[..., SSHRunner] = open_ssh,
    ):
        self.identity = identity
        self.signer = signer
        self.ignition_endpoint = ignition_endpoint
        self.settings = settings
        self._connect = connect
        self._runner: Optional[SSHRunner] = None

    def id(self) -> str:
        return self.identity.instance_id

    def _ssh(self) -> SSHRunner:
        if self._runner is None:
            try:
                self._runner = self._connect(
                    self.identity.ip_address,
                    self.settings.ssh_username,
                    self.signer,
                    port=self.settings.ssh_port,
                    connect_timeout=self.settings.ssh_connect_timeout,
                )
            except (paramiko.SSHException, socket.error) as e:
                raise RemoteAgentError(
                    f"unable to connect to {self.identity.ip_address} as {self.settings.ssh_username}: {e}"
                ) from e
        return self._runner

    def _exec(self, what: str, cmd: str) -> str:
        log.debug("[%s] %s: %s", self.id(), what, cmd)
        try:
            rc, out, err = self._ssh().run(cmd)
        except (paramiko.SSHException, socket.error) as e:
            raise RemoteAgentError(f"{what} on {self.id()} failed: {e}") from e
        if rc != 0:
            raise RemoteAgentError(f"{what} on {self.id()} exited {rc}: {(err or out).strip()}")
        return out

    def configure(self) -> None:
        self._exec(
            "configure",
            self.settings.agent.configure.format(
                ignition_endpoint=self.ignition_endpoint,
                vxlan_port=self.settings.vxlan_port or "",
                machine_name=self.identity.machine_name,
                platform=self.identity.platform.value,
            ),
        )

    def configure_hybrid_overlay(self, node_name: str) -> None:
        self._exec(
            "configure hybrid overlay",
            self.settings.agent.hybrid_overlay.format(
                node_name=node_name,
                vxlan_port=self.settings.vxlan_port or "",
            ),
        )

    def configure_cni(self, config_path: str) -> None:
        remote_path = ntpath.join(self.settings.remote_cni_dir, "cni.conf")
        try:
            self._ssh().put_file(config_path, remote_path)
        except (paramiko.SSHException, OSError) as e:
            raise RemoteAgentError(f"copying {config_path} to {self.id()} failed: {e}") from e
        self._exec(
            "configure CNI",
            self.settings.agent.cni.format(
                config_path=remote_path,
                remote_cni_dir=self.settings.remote_cni_dir,
            ),
        )

    def configure_kube_proxy(self, node_name: str, host_subnet: str) -> None:
        self._exec(
            "start kube-proxy",
            self.settings.agent.kube_proxy.format(node_name=node_name, host_subnet=host_subnet),
        )

    def close(self) -> None:
        if self._runner is not None:
            self._runner.close()
            self._runner = None


def ssh_agent_factory(
    identity: InstanceIdentity,
    signer: paramiko.PKey,
    ignition_endpoint: str,
    settings: NodeConfigSettings,
) -> SSHRemoteAgent:
    return SSHRemoteAgent(identity, signer, ignition_endpoint, settings)
