# src/nodeconfig/config/models.py

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nodeconfig.constants import WINDOWS_OS_LABEL


def _not_blank(val: str) -> str:
    if not val.strip():
        raise ValueError("must be a non-empty string")
    return val


class PlatformType(str, Enum):
    AWS = "AWS"
    AZURE = "Azure"
    GCP = "GCP"
    VSPHERE = "VSphere"
    NONE = "None"


class PollSettings(BaseModel):
    """How often and for how long to wait on the cluster."""
    interval_seconds: float = Field(default=5.0, gt=0)
    timeout_seconds: float = Field(default=300.0, ge=0)


class InstanceIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    instance_id: str
    ip_address: str
    machine_name: str
    platform: PlatformType = PlatformType.NONE

    @field_validator("instance_id", "ip_address")
    @classmethod
    def check_not_blank(cls, val: str) -> str:
        return _not_blank(val)


class AgentCommands(BaseModel):
    """
    Remote commands run by the SSH agent. Each is a str.format template;
    available fields are listed next to each default.
    """
    # ignition_endpoint, vxlan_port, machine_name, platform
    configure: str = (
        "powershell -NonInteractive -Command "
        "\"C:\\k\\wmcb.exe initialize-kubelet --ignition-file C:\\Windows\\Temp\\worker.ign "
        "--kubelet-path C:\\k\\kubelet.exe --ignition-endpoint {ignition_endpoint}\""
    )
    # node_name, vxlan_port
    hybrid_overlay: str = (
        "powershell -NonInteractive -Command "
        "\"Start-Process C:\\k\\hybrid-overlay-node.exe -ArgumentList "
        "'--node {node_name} --k8s-kubeconfig C:\\k\\kubeconfig'\""
    )
    # config_path, remote_cni_dir
    cni: str = (
        "powershell -NonInteractive -Command "
        "\"C:\\k\\wmcb.exe configure-cni --cni-dir {remote_cni_dir} --cni-config {config_path}\""
    )
    # node_name, host_subnet
    kube_proxy: str = (
        "powershell -NonInteractive -Command "
        "\"Start-Service kube-proxy; sc.exe config kube-proxy binPath= "
        "'C:\\k\\kube-proxy.exe --hostname-override={node_name} --cluster-cidr={host_subnet}'\""
    )


class NodeConfigSettings(BaseModel):
    service_cidr: str
    vxlan_port: Optional[str] = None
    cni_template_path: Optional[str] = None     # defaults to the packaged template
    node_label_selector: str = WINDOWS_OS_LABEL
    node_poll: PollSettings = PollSettings()
    annotation_poll: PollSettings = PollSettings()

    kubeconfig: Optional[str] = None
    kube_context: Optional[str] = None

    ssh_username: str = "Administrator"
    ssh_port: int = Field(default=22, ge=1, le=65535)
    ssh_connect_timeout: float = 30.0
    remote_cni_dir: str = "C:\\k\\cni\\config"
    agent: AgentCommands = AgentCommands()


class InstanceSpec(BaseModel):
    instance_id: str
    ip_address: str
    machine_name: str
    platform: PlatformType = PlatformType.NONE
    private_key_path: str

    @field_validator("instance_id", "ip_address", "private_key_path")
    @classmethod
    def check_not_blank(cls, val: str) -> str:
        return _not_blank(val)

    def identity(self) -> InstanceIdentity:
        return InstanceIdentity(
            instance_id=self.instance_id,
            ip_address=self.ip_address,
            machine_name=self.machine_name,
            platform=self.platform,
        )


class NodeConfigFile(BaseModel):
    """Top-level YAML document."""
    settings: NodeConfigSettings
    instances: List[InstanceSpec] = Field(default_factory=list)
    max_workers: int = Field(default=4, ge=1)
