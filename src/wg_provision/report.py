# src/wg_provision/report.py
from __future__ import annotations

from pathlib import Path
from typing import Sequence

import qrcode

from .models import ClientRecord, ProvisionPaths, ServerSettings

RULE = "-" * 66


def write_qr(conf: str, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    img = qrcode.make(conf)
    img.save(str(path))
    path.chmod(0o600)
    return path


def print_report(
    records: Sequence[ClientRecord],
    settings: ServerSettings,
    paths: ProvisionPaths,
) -> None:
    server_ip = settings.address.split("/")[0]

    print("[+] Installation WireGuard terminée.")
    print(f"[+] Configurations clients : {paths.clients_dir}/")
    print("[!] Ces fichiers ne sont PAS envoyés : transfère-les vers les appareils")
    print("    par un canal sûr (scp, clé USB...).")
    print("[!] Pour tester :")
    print(f"    sudo wg  (état de {paths.interface})")
    print(f"    ping {server_ip}  (IP VPN du serveur, depuis un client)")
    print("    ping 8.8.8.8  (sortie internet via le NAT)")
    print()
    print("------------------------ Client Configurations ------------------------")
    print()

    for record in records:
        print(f"Client : {record.name} ({record.peer_address})")
        print(RULE)
        print(record.config_path.read_text(encoding="utf-8"), end="")
        print()

    print(RULE)
