# src/wg_provision/settings.py
from __future__ import annotations

import ipaddress
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .errors import ConfigEncodingError, ConfigNotFound, InvalidField, MissingField
from .models import ServerSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("wireguard_config.conf")

REQUIRED_FIELDS = ("ServerIP", "ListenPort", "Users")


def parse_config_text(text: str) -> Dict[str, str]:
    """
    Lit des lignes "Key = value". Les clés sont normalisées en minuscules,
    les commentaires (# ou ;) et lignes vides sont ignorés.
    """
    values: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", ";")):
            continue
        if "=" not in line:
            logger.warning("Ignoring malformed config line: %r", raw)
            continue
        key, value = line.split("=", 1)
        key = key.strip().lower()
        if key in values:
            logger.warning("Duplicate key '%s', keeping first value", key)
            continue
        values[key] = value.strip()
    return values


def _get(values: Dict[str, str], field: str) -> Optional[str]:
    value = values.get(field.lower(), "")
    return value or None


def _require(values: Dict[str, str], field: str) -> str:
    value = _get(values, field)
    if value is None:
        raise MissingField(field)
    return value


def parse_users(raw: str) -> List[str]:
    users = [u.strip() for u in raw.split(",")]
    for user in users:
        if not user:
            raise InvalidField("Users", f"empty user name in {raw!r}")
        if "/" in user or "\\" in user or user in (".", ".."):
            raise InvalidField("Users", f"user name {user!r} is not a valid file name")
    return users


def parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        raise InvalidField("ListenPort", f"{raw!r} is not an integer") from None
    if not 1 <= port <= 65535:
        raise InvalidField("ListenPort", f"{port} is out of range 1-65535")
    return port


def parse_address(raw: str) -> str:
    if "/" not in raw:
        raise InvalidField("ServerIP", f"{raw!r} must be in CIDR form, ex 10.0.0.1/24")
    try:
        ipaddress.ip_interface(raw)
    except ValueError as exc:
        raise InvalidField("ServerIP", str(exc)) from None
    return raw


def load_settings(path: Optional[Path] = None) -> ServerSettings:
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not path.is_file():
        raise ConfigNotFound(path)

    try:
        # utf-8-sig : un BOM en tête ne doit pas masquer la première clé
        text = path.read_bytes().decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ConfigEncodingError(path, exc.start) from None

    values = parse_config_text(text)

    for field in REQUIRED_FIELDS:
        _require(values, field)

    users = parse_users(_require(values, "Users"))
    if len(set(users)) != len(users):
        logger.warning("Duplicate user names in Users: %s", ", ".join(users))

    settings = ServerSettings(
        address=parse_address(_require(values, "ServerIP")),
        listen_port=parse_port(_require(values, "ListenPort")),
        dns=_get(values, "DNS"),
        users=tuple(users),
        endpoint=_get(values, "Endpoint"),
    )
    logger.info("Loaded %d user(s) from %s", len(settings.users), path)
    return settings
