# src/wg_provision/provision.py
from __future__ import annotations

import ipaddress
import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .errors import ArtifactExists, EndpointLookupError
from .ipam import FIRST_CLIENT_HOST, check_capacity, host_address
from .models import ClientRecord, KeyPair, ProvisionPaths, ServerSettings
from .wireguard import (
    append_peer,
    generate_keypair,
    render_client_conf,
    write_client_conf,
    write_keypair,
)

logger = logging.getLogger(__name__)

CHECKIP_URL = "http://checkip.amazonaws.com"


# ---------- Endpoint public ----------

def lookup_public_ip(url: str = CHECKIP_URL, timeout: float = 5.0) -> str:
    try:
        with urllib.request.urlopen(url, timeout=timeout) as resp:
            body = resp.read().decode("utf-8").strip()
    except (urllib.error.URLError, OSError) as exc:
        raise EndpointLookupError(f"Cannot reach {url}: {exc}") from exc
    except UnicodeDecodeError:
        raise EndpointLookupError(f"{url} returned a non-text answer, not an IP address") from None

    try:
        ipaddress.ip_address(body)
    except ValueError:
        raise EndpointLookupError(f"{url} returned {body[:64]!r}, not an IP address") from None
    return body


def format_endpoint(host: str, port: int) -> str:
    """
    "1.2.3.4" -> "1.2.3.4:51820", "vpn.example.com:443" inchangé,
    une IPv6 nue est mise entre crochets.
    """
    if host.startswith("["):
        return host if "]:" in host else f"{host}:{port}"
    try:
        if ipaddress.ip_address(host).version == 6:
            return f"[{host}]:{port}"
    except ValueError:
        pass
    _, sep, maybe_port = host.rpartition(":")
    if sep and maybe_port.isdigit():
        return host
    return f"{host}:{port}"


def resolve_endpoint(
    settings: ServerSettings,
    override: Optional[str] = None,
    lookup: Callable[[], str] = lookup_public_ip,
) -> str:
    host = override or settings.endpoint
    if host is None:
        host = lookup()
        logger.info("public address from echo service: %s", host)
    return format_endpoint(host, settings.listen_port)


# ---------- Pré-vérifications ----------

def existing_artifacts(paths: ProvisionPaths, users: Sequence[str]) -> List[Path]:
    candidates = [
        paths.server_config,
        paths.server_private_key,
        paths.server_public_key,
    ]
    for name in users:
        candidates += [
            paths.client_config(name),
            paths.client_private_key(name),
            paths.client_public_key(name),
        ]
    return [p for p in candidates if p.exists()]


def check_artifacts(paths: ProvisionPaths, users: Sequence[str], force: bool = False) -> None:
    found = existing_artifacts(paths, users)
    if not found:
        return
    if force:
        logger.warning("overwriting %d existing file(s) (--force)", len(found))
        return
    listing = "\n".join(f"  {p}" for p in found)
    raise ArtifactExists(
        "Refusing to overwrite existing keys/configs (use --force to re-provision):\n"
        + listing
    )


# ---------- Provisioning des clients ----------

def provision_client(
    name: str,
    counter: int,
    settings: ServerSettings,
    paths: ProvisionPaths,
    server_public_key: str,
    endpoint: str,
    keygen: Callable[[], KeyPair] = generate_keypair,
) -> ClientRecord:
    keypair = write_keypair(keygen(), paths.client_private_key(name), paths.client_public_key(name))

    record = ClientRecord(
        name=name,
        host=counter,
        address=host_address(counter),
        keypair=keypair,
        config_path=paths.client_config(name),
    )

    append_peer(paths.server_config, keypair.public_key, record.peer_address)
    conf = render_client_conf(record, settings.dns, server_public_key, endpoint)
    write_client_conf(record.config_path, conf)
    logger.info("client %s -> %s", name, record.peer_address)
    return record


def provision_clients(
    settings: ServerSettings,
    paths: ProvisionPaths,
    server_public_key: str,
    endpoint: str,
    keygen: Callable[[], KeyPair] = generate_keypair,
) -> List[ClientRecord]:
    """
    Un peer par utilisateur, dans l'ordre de `settings.users`.
    Le compteur d'adresse part de FIRST_CLIENT_HOST et avance de 1 par utilisateur ;
    toute erreur interrompt le lot (les fichiers déjà écrits restent en place).
    """
    check_capacity(len(settings.users))
    paths.clients_dir.mkdir(parents=True, exist_ok=True)

    records: List[ClientRecord] = []
    for counter, name in enumerate(settings.users, start=FIRST_CLIENT_HOST):
        records.append(
            provision_client(
                name,
                counter,
                settings,
                paths,
                server_public_key=server_public_key,
                endpoint=endpoint,
                keygen=keygen,
            )
        )
    return records
