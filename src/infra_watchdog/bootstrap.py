# ─── Standard library imports ───
import os
import shutil
from pathlib import Path
from dataclasses import dataclass

# ─── Project imports ───
from .errors import ConfigError
from .logger import get_logger
from .utils import is_valid_ip, PING_COMMAND
from .config import Config, Overrides
from .power_source import PowerSourceReader, detect_power_source


logger = get_logger("bootstrap")


@dataclass(frozen=True)
class EnvCapabilities:
    """
    Observed runtime capabilities derived at startup.

    These represent what the host actually offers,
    not what it is configured to do in theory.
    """
    power_source: PowerSourceReader


def bootstrap(config: Config, overrides: Overrides) -> EnvCapabilities:
    """
    Validate runtime configuration and derive startup capabilities.

    Hard invariant violations raise ConfigError and abort before any probing.
    Soft findings are logged only.
    """

    _validate_invariants(config, overrides)
    return discover_runtime_capabilities()


def _check_folder(path: Path, title: str, create: bool, dry_run: bool) -> None:
    folder = path.parent
    if not folder.exists():
        if not create:
            raise ConfigError(f"{title} folder '{folder}' does not exist")
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"{title} folder '{folder}' cannot be created") from e
        logger.info(f"{title} folder '{folder}' created")

    if not folder.is_dir():
        raise ConfigError(f"{title} folder '{folder}' is a file")

    if not os.access(folder, os.W_OK | os.X_OK):
        if dry_run:
            logger.warning(f"{title} folder '{folder}' is unwritable; proceeding (dry run)")
            return
        raise ConfigError(f"{title} folder '{folder}' is unwritable")


def _validate_invariants(config: Config, overrides: Overrides) -> None:
    """
    Validate what must hold for a run to behave correctly.
    """
    relay_device = Path(config.relay_device)
    if not relay_device.exists():
        if overrides.dry_run or overrides.ignore_relay:
            logger.warning(f"Relay device '{relay_device}' does not exist; proceeding without relay")
        else:
            raise ConfigError(f"Relay device '{relay_device}' does not exist")

    _check_folder(Path(config.state_file), "Log", create=True, dry_run=overrides.dry_run)
    if config.status_file:
        _check_folder(Path(config.status_file), "Status", create=False, dry_run=overrides.dry_run)

    connectivity_forced = overrides.force_inet or overrides.force_noinet
    if not connectivity_forced and shutil.which(PING_COMMAND) is None:
        raise ConfigError(f"Required command '{PING_COMMAND}' not found")

    # Hostnames are legal ping targets, so this is advisory only
    for ip in (*config.inet_ips, config.camera_front_ip, config.camera_back_ip):
        if ip and not is_valid_ip(ip):
            logger.warning(f"'{ip}' is not an IPv4 address; probing it as a hostname")


def discover_runtime_capabilities() -> EnvCapabilities:
    """
    Detect the platform once and pick the matching power source reader.
    """
    reader = detect_power_source()
    if reader.source is None:
        logger.warning("Unrecognized platform; mains status will be UNKNOWN")
    else:
        logger.info(f"Power source: {reader.name} ({reader.source})")

    return EnvCapabilities(power_source=reader)
