"""
Fixtures communes : pas de réseau, pas de root, pas de vrai binaire wg.
"""
import itertools
import subprocess

import pytest

from wg_provision.models import KeyPair, ProvisionPaths, ServerSettings


class FakeKeygen:
    """Génère des clés déterministes et compte les appels."""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return KeyPair(
            private_key=f"priv{self.calls}=",
            public_key=f"pub{self.calls}=",
        )


class FakeRunner:
    """Remplace system.run_cmd ; simule wg genkey / wg pubkey."""

    def __init__(self):
        self.commands = []
        self.fail_on = set()
        self.outputs = {}
        self._counter = itertools.count(1)

    def __call__(self, cmd, check=True, input=None):
        from wg_provision.errors import CommandError

        self.commands.append(list(cmd))
        key = " ".join(cmd)
        if key in self.fail_on:
            raise CommandError(list(cmd), 1, "boom")
        if cmd == ["wg", "genkey"]:
            stdout = f"priv{next(self._counter)}=\n"
        elif cmd == ["wg", "pubkey"]:
            stdout = "pub-" + (input or "").strip() + "\n"
        else:
            stdout = self.outputs.get(key, "")
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")


@pytest.fixture
def keygen():
    return FakeKeygen()


@pytest.fixture
def runner(monkeypatch):
    fake = FakeRunner()
    for module in (
        "wg_provision.system",
        "wg_provision.wireguard",
        "wg_provision.firewall",
        "wg_provision.service",
    ):
        monkeypatch.setattr(f"{module}.run_cmd", fake)
    return fake


@pytest.fixture
def paths(tmp_path):
    return ProvisionPaths(
        wireguard_dir=tmp_path / "wireguard",
        interface="wg0",
        sysctl_file=tmp_path / "sysctl.d" / "99-wireguard.conf",
    )


@pytest.fixture
def settings():
    return ServerSettings(
        address="10.0.0.1/24",
        listen_port=51820,
        dns="1.1.1.1",
        users=("alice", "bob"),
    )


@pytest.fixture
def write_config(tmp_path):
    def _write(text, name="wireguard_config.conf"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
