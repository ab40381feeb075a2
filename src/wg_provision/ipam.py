# src/wg_provision/ipam.py
from __future__ import annotations

import ipaddress

from .errors import AddressSpaceExhausted

CLIENT_NETWORK = ipaddress.ip_network("10.0.0.0/24")
FIRST_CLIENT_HOST = 2  # .1 est réservé au serveur


def capacity(network: ipaddress.IPv4Network = CLIENT_NETWORK) -> int:
    """
    Nombre d'adresses client disponibles : de .2 jusqu'à l'avant-dernière (broadcast exclu).
    """
    return network.num_addresses - 1 - FIRST_CLIENT_HOST


def check_capacity(count: int, network: ipaddress.IPv4Network = CLIENT_NETWORK) -> None:
    available = capacity(network)
    if count > available:
        raise AddressSpaceExhausted(
            f"{count} users requested but only {available} client addresses "
            f"are available in {network}"
        )


def host_address(counter: int, network: ipaddress.IPv4Network = CLIENT_NETWORK) -> str:
    """
    Retourne l'adresse du compteur sous forme '10.0.0.X'.
    """
    if not FIRST_CLIENT_HOST <= counter < FIRST_CLIENT_HOST + capacity(network):
        raise AddressSpaceExhausted(f"Host number {counter} is outside {network}")
    return str(network.network_address + counter)
