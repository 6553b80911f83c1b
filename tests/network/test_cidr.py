import pytest

from nodeconfig.errors import ValidationError
from nodeconfig.network.cidr import validate_cidr
from nodeconfig.network.network import Network


@pytest.mark.parametrize("value", ["172.30.0.0/16", "10.132.0.0/24", "fd02::/112"])
def test_valid_cidrs(value):
    assert validate_cidr(value) == value


@pytest.mark.parametrize("value", ["", "172.30.0.0", "172.30.0.1/16", "300.1.1.0/24", "abc/8", "10.0.0.0/33"])
def test_invalid_cidrs(value):
    with pytest.raises(ValidationError):
        validate_cidr(value)


def test_network_validates_service_cidr():
    with pytest.raises(ValidationError):
        Network(service_cidr="nope")


def test_network_host_subnet_is_set_after_validation():
    net = Network(service_cidr="172.30.0.0/16", vxlan_port="4789")
    assert net.host_subnet is None
    net.set_host_subnet("10.132.2.0/24")
    assert net.host_subnet == "10.132.2.0/24"
    with pytest.raises(ValidationError):
        net.set_host_subnet("garbage")
    assert net.host_subnet == "10.132.2.0/24"
