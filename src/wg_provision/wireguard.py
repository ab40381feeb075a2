# src/wg_provision/wireguard.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .errors import CommandError, KeyGenerationFailure
from .models import ClientRecord, KeyPair, ServerSettings
from .system import run_cmd

logger = logging.getLogger(__name__)

CATCH_ALL_ROUTE = "0.0.0.0/0"
PERSISTENT_KEEPALIVE = 25


# ---------- Génération de clés ----------

def generate_keypair() -> KeyPair:
    """
    Retourne une KeyPair en utilisant wg(8).
    Nécessite 'wg' (wireguard-tools) installé sur la machine.
    """
    try:
        priv = run_cmd(["wg", "genkey"]).stdout.strip()
        # pubkey lit la clé privée sur stdin
        pub = run_cmd(["wg", "pubkey"], input=priv + "\n").stdout.strip()
    except CommandError as exc:
        raise KeyGenerationFailure(str(exc)) from exc

    if not priv or not pub:
        raise KeyGenerationFailure("wg returned an empty key")
    return KeyPair(private_key=priv, public_key=pub)


def _write_secret(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(content)
    # équivalent du umask 077
    path.chmod(0o600)


def read_key(path: Path) -> str:
    return path.read_text(encoding="utf-8").strip()


def write_keypair(keypair: KeyPair, private_path: Path, public_path: Path) -> KeyPair:
    """
    Écrit les deux clés puis les relit : les fichiers font foi.
    """
    _write_secret(private_path, keypair.private_key + "\n")
    _write_secret(public_path, keypair.public_key + "\n")
    stored = KeyPair(private_key=read_key(private_path), public_key=read_key(public_path))
    if stored != keypair:
        raise KeyGenerationFailure(f"Key files {private_path} / {public_path} do not match the generated keys")
    logger.debug("keypair written to %s / %s", private_path, public_path)
    return stored


# ---------- Rendu des configs ----------

def render_server_interface(
    settings: ServerSettings,
    private_key: str,
    post_up: str,
    post_down: str,
) -> str:
    lines = [
        "[Interface]",
        f"Address = {settings.address}",
        "SaveConfig = true",
        f"ListenPort = {settings.listen_port}",
        f"PrivateKey = {private_key}",
    ]
    if settings.dns:
        lines.append(f"DNS = {settings.dns}")
    lines += [
        f"PostUp = {post_up}",
        f"PostDown = {post_down}",
    ]
    return "\n".join(lines) + "\n"


def render_peer_block(public_key: str, allowed_ips: str) -> str:
    return "\n".join([
        "",  # ligne vide avant chaque peer
        "[Peer]",
        f"PublicKey = {public_key}",
        f"AllowedIPs = {allowed_ips}",
    ]) + "\n"


def render_client_conf(
    record: ClientRecord,
    dns: Optional[str],
    server_public_key: str,
    endpoint: str,
) -> str:
    lines = [
        "[Interface]",
        f"PrivateKey = {record.keypair.private_key}",
        f"Address = {record.interface_address}",
    ]

    if dns:
        lines.append(f"DNS = {dns}")

    lines += [
        "",
        "[Peer]",
        f"PublicKey = {server_public_key}",
        f"AllowedIPs = {CATCH_ALL_ROUTE}",
        f"Endpoint = {endpoint}",
        # keepalive pour garder la traduction NAT ouverte côté client
        f"PersistentKeepalive = {PERSISTENT_KEEPALIVE}",
    ]

    return "\n".join(lines) + "\n"


# ---------- Écriture des fichiers ----------

def write_server_conf(path: Path, header: str) -> Path:
    """
    Crée (ou écrase) <wireguard_dir>/<interface>.conf avec la section [Interface].
    """
    _write_secret(path, header)
    return path


def append_peer(path: Path, public_key: str, allowed_ips: str) -> None:
    with path.open("a", encoding="utf-8") as f:
        f.write(render_peer_block(public_key, allowed_ips))


def write_client_conf(path: Path, conf: str) -> Path:
    _write_secret(path, conf)
    return path
