import pytest

from wg_provision import service
from wg_provision.errors import PackageInstallFailure, ServiceStartFailure


@pytest.fixture
def as_root(monkeypatch):
    monkeypatch.setattr("wg_provision.system.os.geteuid", lambda: 0)


@pytest.fixture
def binaries(monkeypatch):
    available = set()
    monkeypatch.setattr(service, "has_binary", lambda name: name in available)
    return available


def test_activate_enables_forwarding_and_service(runner, paths, as_root):
    service.activate(paths)

    assert paths.sysctl_file.read_text() == "net.ipv4.ip_forward=1\n"
    assert runner.commands == [
        ["sysctl", "-p", str(paths.sysctl_file)],
        ["systemctl", "enable", "wg-quick@wg0"],
        ["systemctl", "start", "wg-quick@wg0"],
    ]


def test_activate_without_start_only_enables_forwarding(runner, paths, as_root):
    service.activate(paths, start=False)

    assert paths.sysctl_file.read_text() == "net.ipv4.ip_forward=1\n"
    assert runner.commands == [["sysctl", "-p", str(paths.sysctl_file)]]


def test_activate_twice_keeps_single_sysctl_line(runner, paths, as_root):
    service.activate(paths)
    service.activate(paths)
    assert paths.sysctl_file.read_text().count("ip_forward") == 1


def test_activate_start_failure(runner, paths, as_root):
    runner.fail_on.add("systemctl start wg-quick@wg0")

    with pytest.raises(ServiceStartFailure) as exc:
        service.activate(paths)
    assert "systemctl status wg-quick@wg0" in str(exc.value)


def test_activate_requires_root(runner, paths, monkeypatch):
    monkeypatch.setattr("wg_provision.system.os.geteuid", lambda: 1000)
    with pytest.raises(PermissionError):
        service.activate(paths)
    assert runner.commands == []


def test_install_commands_amazon_linux(binaries):
    binaries.update({"yum", "amazon-linux-extras"})
    assert service.install_commands() == [
        ["yum", "update", "-y"],
        ["amazon-linux-extras", "install", "epel", "-y"],
        ["yum", "install", "wireguard-tools", "iptables", "-y"],
    ]


def test_install_commands_debian(binaries):
    binaries.add("apt-get")
    assert service.install_commands()[-1] == [
        "apt-get", "install", "-y", "wireguard-tools", "iptables",
    ]


def test_install_commands_unsupported(binaries):
    with pytest.raises(PackageInstallFailure):
        service.install_commands()


def test_install_wireguard_loads_module(runner, binaries, as_root):
    binaries.add("apt-get")
    runner.outputs["lsmod"] = (
        "Module                  Size  Used by\n"
        "wireguard             94208  0\n"
    )

    service.install_wireguard()

    assert ["modprobe", "wireguard"] in runner.commands


def test_install_wireguard_module_missing(runner, binaries, as_root):
    binaries.add("apt-get")
    runner.outputs["lsmod"] = "Module  Size  Used by\nwireguard_extra 1 0\n"

    with pytest.raises(PackageInstallFailure):
        service.install_wireguard()


def test_install_wireguard_package_failure(runner, binaries, as_root):
    binaries.add("apt-get")
    runner.fail_on.add("apt-get update")

    with pytest.raises(PackageInstallFailure):
        service.install_wireguard()
