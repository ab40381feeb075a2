# src/wg_provision/errors.py
from __future__ import annotations


class ProvisionError(RuntimeError):
    """Erreur fatale : le provisioning s'arrête, rien n'est annulé."""

    step = "provisioning"


class ConfigError(ProvisionError):
    step = "configuration"


class ConfigNotFound(ConfigError):
    def __init__(self, path):
        super().__init__(f"Configuration file '{path}' not found")
        self.path = path


class ConfigEncodingError(ConfigError):
    def __init__(self, path, offset: int):
        super().__init__(f"Configuration file '{path}' is not valid UTF-8 (byte {offset})")
        self.path = path
        self.offset = offset


class MissingField(ConfigError):
    def __init__(self, field: str):
        super().__init__(f"Required field '{field}' is missing or empty")
        self.field = field


class InvalidField(ConfigError):
    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid value for '{field}': {reason}")
        self.field = field


class CommandError(ProvisionError):
    step = "system command"

    def __init__(self, cmd: list[str], returncode: int, stderr: str = ""):
        msg = f"Command failed ({returncode}): {' '.join(cmd)}"
        if stderr:
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr


class InterfaceDetectionError(ProvisionError):
    step = "server configuration"


class EndpointLookupError(ProvisionError):
    step = "endpoint lookup"


class KeyGenerationFailure(ProvisionError):
    step = "key generation"


class AddressSpaceExhausted(ProvisionError):
    step = "client provisioning"


class ArtifactExists(ProvisionError):
    step = "pre-flight check"


class PackageInstallFailure(ProvisionError):
    step = "package installation"


class ServiceStartFailure(ProvisionError):
    step = "service activation"
