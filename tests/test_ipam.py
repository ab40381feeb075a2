import pytest

from wg_provision.errors import AddressSpaceExhausted
from wg_provision.ipam import capacity, check_capacity, host_address


def test_capacity_of_slash_24():
    assert capacity() == 253


def test_host_addresses():
    assert host_address(2) == "10.0.0.2"
    assert host_address(254) == "10.0.0.254"


@pytest.mark.parametrize("counter", [0, 1, 255, 300])
def test_host_outside_client_range(counter):
    with pytest.raises(AddressSpaceExhausted):
        host_address(counter)


def test_check_capacity():
    check_capacity(253)
    with pytest.raises(AddressSpaceExhausted):
        check_capacity(254)
