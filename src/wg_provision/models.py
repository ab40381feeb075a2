# src/wg_provision/models.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class KeyPair:
    private_key: str
    public_key: str


@dataclass(frozen=True)
class ServerSettings:
    address: str                     # ex "10.0.0.1/24"
    listen_port: int                 # ex 51820
    dns: Optional[str]               # ex "1.1.1.1", poussé aux clients
    users: Tuple[str, ...]           # ordre du fichier de config
    endpoint: Optional[str] = None   # "host" ou "host:port", sinon IP publique détectée


@dataclass(frozen=True)
class ClientRecord:
    name: str
    host: int            # valeur du compteur, ex 2
    address: str         # ex "10.0.0.2"
    keypair: KeyPair
    config_path: Path

    @property
    def peer_address(self) -> str:
        return f"{self.address}/32"

    @property
    def interface_address(self) -> str:
        return f"{self.address}/24"


@dataclass
class ProvisionPaths:
    wireguard_dir: Path = Path("/etc/wireguard")
    interface: str = "wg0"
    sysctl_file: Path = Path("/etc/sysctl.d/99-wireguard.conf")

    @property
    def server_private_key(self) -> Path:
        return self.wireguard_dir / "privatekey"

    @property
    def server_public_key(self) -> Path:
        return self.wireguard_dir / "publickey"

    @property
    def server_config(self) -> Path:
        return self.wireguard_dir / f"{self.interface}.conf"

    @property
    def clients_dir(self) -> Path:
        return self.wireguard_dir / "clients"

    def client_private_key(self, name: str) -> Path:
        return self.clients_dir / f"{name}_privatekey"

    def client_public_key(self, name: str) -> Path:
        return self.clients_dir / f"{name}_publickey"

    def client_config(self, name: str) -> Path:
        return self.clients_dir / f"{name}.conf"

    def client_qr(self, name: str) -> Path:
        return self.clients_dir / f"{name}.png"

    @property
    def service_unit(self) -> str:
        return f"wg-quick@{self.interface}"
