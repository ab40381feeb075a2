# src/wg_provision/server.py

from __future__ import annotations

import logging
from typing import Callable, Optional

from .firewall import detect_wan_iface, nat_rules
from .models import KeyPair, ProvisionPaths, ServerSettings
from .wireguard import (
    generate_keypair,
    render_server_interface,
    write_keypair,
    write_server_conf,
)

logger = logging.getLogger(__name__)


def build_server(
    settings: ServerSettings,
    paths: ProvisionPaths,
    wan_iface: Optional[str] = None,
    keygen: Callable[[], KeyPair] = generate_keypair,
) -> KeyPair:
    if wan_iface is None:
        wan_iface = detect_wan_iface()

    keypair = write_keypair(keygen(), paths.server_private_key, paths.server_public_key)

    rules = nat_rules(wan_iface)
    header = render_server_interface(
        settings,
        private_key=keypair.private_key,
        post_up=rules.post_up,
        post_down=rules.post_down,
    )
    write_server_conf(paths.server_config, header)
    logger.info("server config written to %s (NAT via %s)", paths.server_config, wan_iface)
    return keypair
