# src/wg_provision/service.py
from __future__ import annotations

import logging
from typing import List

from .errors import CommandError, PackageInstallFailure, ServiceStartFailure
from .models import ProvisionPaths
from .system import has_binary, require_root, run_cmd

logger = logging.getLogger(__name__)

SYSCTL_FORWARD = "net.ipv4.ip_forward=1"
PACKAGES = ["wireguard-tools", "iptables"]


# ---------- Installation ----------

def install_commands() -> List[List[str]]:
    """
    Commandes d'installation selon le gestionnaire de paquets disponible.
    """
    if has_binary("yum"):
        cmds = [["yum", "update", "-y"]]
        # Amazon Linux 2 : wireguard-tools est dans EPEL
        if has_binary("amazon-linux-extras"):
            cmds.append(["amazon-linux-extras", "install", "epel", "-y"])
        cmds.append(["yum", "install", *PACKAGES, "-y"])
        return cmds
    if has_binary("apt-get"):
        return [
            ["apt-get", "update"],
            ["apt-get", "install", "-y", *PACKAGES],
        ]
    raise PackageInstallFailure("No supported package manager found (yum or apt-get).")


def load_kernel_module() -> None:
    try:
        run_cmd(["modprobe", "wireguard"])
        loaded = run_cmd(["lsmod"]).stdout
    except CommandError as exc:
        raise PackageInstallFailure(f"Cannot load wireguard kernel module: {exc}") from exc

    if not any(line.split()[:1] == ["wireguard"] for line in loaded.splitlines()):
        raise PackageInstallFailure("wireguard kernel module is not listed by lsmod")


def install_wireguard() -> None:
    require_root("package installation")

    for cmd in install_commands():
        try:
            run_cmd(cmd)
        except CommandError as exc:
            raise PackageInstallFailure(str(exc)) from exc

    load_kernel_module()
    logger.info("wireguard installed and kernel module loaded")


# ---------- Activation ----------

def enable_ip_forwarding(paths: ProvisionPaths) -> None:
    """
    Fichier dédié dans sysctl.d : réécrire ne duplique pas la ligne.
    """
    paths.sysctl_file.parent.mkdir(parents=True, exist_ok=True)
    paths.sysctl_file.write_text(SYSCTL_FORWARD + "\n", encoding="utf-8")
    run_cmd(["sysctl", "-p", str(paths.sysctl_file)])


def activate(paths: ProvisionPaths, start: bool = True) -> None:
    """
    Le forwarding IP est toujours activé ; `start=False` laisse le service arrêté.
    """
    require_root("service activation")

    unit = paths.service_unit
    try:
        enable_ip_forwarding(paths)
        if not start:
            logger.info("ip forwarding enabled, %s left stopped", unit)
            return
        run_cmd(["systemctl", "enable", unit])
        run_cmd(["systemctl", "start", unit])
    except (CommandError, OSError) as exc:
        raise ServiceStartFailure(
            f"{exc}\nCheck the service with: systemctl status {unit}"
        ) from exc
    logger.info("%s enabled and started", unit)
