# src/wg_provision/system.py
from __future__ import annotations

import logging
import os
import shutil
import subprocess
from typing import List, Optional

from .errors import CommandError

logger = logging.getLogger(__name__)


def has_binary(binary: str) -> bool:
    return shutil.which(binary) is not None


def is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def require_root(action: str) -> None:
    if not is_root():
        raise PermissionError(f"{action} requires root (run with sudo).")


def run_cmd(
    cmd: List[str],
    check: bool = True,
    input: Optional[str] = None,
) -> subprocess.CompletedProcess:
    logger.debug("run: %s", " ".join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            input=input,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise CommandError(cmd, 127, str(exc)) from exc

    if check and proc.returncode != 0:
        raise CommandError(cmd, proc.returncode, proc.stderr)
    return proc
