# src/wg_provision/firewall.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import CommandError, InterfaceDetectionError
from .system import run_cmd

logger = logging.getLogger(__name__)


# -----------------------------
# Data
# -----------------------------

@dataclass(frozen=True)
class NatRules:
    wan_iface: str
    post_up: str
    post_down: str


# -----------------------------
# Helpers
# -----------------------------

def parse_default_route(output: str) -> Optional[str]:
    """
    Extrait l'interface de la première route par défaut.
    ex: "default via 172.31.0.1 dev eth0 proto dhcp ..." -> "eth0"
    """
    line = next((l for l in output.splitlines() if l.strip()), "")
    if not line:
        return None
    parts = line.split()
    if "dev" not in parts:
        return None
    idx = parts.index("dev")
    if idx + 1 >= len(parts):
        return None
    return parts[idx + 1]


def detect_wan_iface() -> str:
    try:
        out = run_cmd(["ip", "-o", "-4", "route", "show", "to", "default"]).stdout
    except CommandError as exc:
        raise InterfaceDetectionError(f"Cannot read routing table: {exc}") from exc

    iface = parse_default_route(out)
    if iface is None:
        raise InterfaceDetectionError(
            "Cannot detect default route interface (no usable 'ip route show to default' output)."
        )
    logger.info("egress interface: %s", iface)
    return iface


def _rules(action: str, wan_iface: str) -> str:
    return (
        f"iptables {action} FORWARD -i %i -j ACCEPT; "
        f"iptables -t nat {action} POSTROUTING -o {wan_iface} -j MASQUERADE"
    )


def nat_rules(wan_iface: str) -> NatRules:
    """
    Règles PostUp/PostDown : forward depuis le tunnel + masquerade sur le WAN.
    %i est remplacé par wg-quick par le nom de l'interface.
    """
    return NatRules(
        wan_iface=wan_iface,
        post_up=_rules("-A", wan_iface),
        post_down=_rules("-D", wan_iface),
    )
