# --- Standard library imports ---
import os
import logging
from pathlib import Path
from dataclasses import dataclass, fields, replace
from typing import Callable, Mapping, Optional

# --- Third-party imports ---
from dotenv import load_dotenv, dotenv_values

# --- Project imports ---
from .errors import ConfigError
from .logger import get_logger


logger = get_logger("config")

# --- Logging intensity bounds (0=none, 1=errors, 2=warnings, 3=info, 4=full) ---
LOGGING_LEVEL_MIN = 0
LOGGING_LEVEL_MAX = 4


@dataclass(frozen=True)
class Config:
    """
    Immutable runtime configuration, built once at startup.

    Layers are merged in order: built-in defaults → environment (.env) →
    configuration file → credentials file → command line. Later layers win.
    """

    # --- Connectivity probes ---
    inet_ips: tuple[str, ...] = ("8.8.4.4", "1.0.0.1", "208.67.220.220")
    ping_timeout_s: int = 5

    # --- Relay board ---
    relay_device: str = "/dev/null"
    relay_settle_delay_s: float = 1.0
    countdown_periods: int = 3

    # --- Persistence ---
    state_file: str = "/tmp/infra_watchdog.dat"
    status_file: Optional[str] = "/tmp/infra_watchdog.inf"

    # --- Auxiliary devices ---
    camera_front_ip: Optional[str] = None
    camera_back_ip: Optional[str] = None

    # --- ThingsBoard telemetry ---
    thingsboard_host: Optional[str] = None
    thingsboard_token: Optional[str] = None
    thingsboard_fail_count: int = 4
    thingsboard_fail_delay_s: float = 15.0
    thingsboard_code_ok: int = 200
    thingsboard_timeout_s: float = 3.0

    # --- Observability ---
    logging_level: int = 1   # syslog intensity
    log_level: str = "INFO"  # console

    def summary(self) -> dict:
        """
        Return the effective configuration for the --configs listing.
        Secrets are masked.
        """
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if data["thingsboard_token"]:
            data["thingsboard_token"] = "****"
        return data


@dataclass(frozen=True)
class Overrides:
    """
    Runtime switches injected from the command line.

    Forced modes short-circuit the probes before any real I/O.
    """
    dry_run: bool = False
    ignore_relay: bool = False
    force_mains: bool = False
    force_battery: bool = False
    force_inet: bool = False
    force_noinet: bool = False
    force_cam: bool = False
    force_nocam: bool = False

    @property
    def forced(self) -> bool:
        return any(
            (
                self.ignore_relay,
                self.force_mains,
                self.force_battery,
                self.force_inet,
                self.force_noinet,
                self.force_cam,
                self.force_nocam,
            )
        )


# --- Parsers for raw KEY=value strings ---
def _text(raw: str) -> Optional[str]:
    raw = raw.strip()
    return raw or None


def _required_text(raw: str) -> str:
    value = raw.strip()
    if not value:
        raise ValueError("empty value")
    return value


def _log_level(raw: str) -> str:
    name = _required_text(raw).upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ValueError(f"unknown log level {name}")
    return name


def _ip_list(raw: str) -> tuple[str, ...]:
    ips = tuple(ip for ip in raw.replace(",", " ").split() if ip)
    if not ips:
        raise ValueError("no addresses")
    return ips


# Recognized keys → (dataclass field, parser)
KEYS: dict[str, tuple[str, Callable[[str], object]]] = {
    "INET_IPS": ("inet_ips", _ip_list),
    "PING_TIMEOUT": ("ping_timeout_s", int),
    "RELAY_DEVICE": ("relay_device", _required_text),
    "RELAY_SETTLE_DELAY": ("relay_settle_delay_s", float),
    "COUNTDOWN_PERIODS": ("countdown_periods", int),
    "STATE_FILE": ("state_file", _required_text),
    "STATUS_FILE": ("status_file", _text),
    "CAMERA_FRONT_IP": ("camera_front_ip", _text),
    "CAMERA_BACK_IP": ("camera_back_ip", _text),
    "THINGSBOARD_HOST": ("thingsboard_host", _text),
    "THINGSBOARD_TOKEN": ("thingsboard_token", _text),
    "THINGSBOARD_FAIL_COUNT": ("thingsboard_fail_count", int),
    "THINGSBOARD_FAIL_DELAY": ("thingsboard_fail_delay_s", float),
    "THINGSBOARD_CODE_OK": ("thingsboard_code_ok", int),
    "THINGSBOARD_TIMEOUT": ("thingsboard_timeout_s", float),
    "LOGGING_LEVEL": ("logging_level", int),
    "LOG_LEVEL": ("log_level", _log_level),
}


def read_layer_file(path: str, title: str) -> dict[str, str]:
    """
    Parse a KEY=value file without executing it.

    A declared but missing file is a configuration error;
    an empty file is ignored.
    """
    file = Path(path)
    if not file.is_file():
        raise ConfigError(f"{title} file '{path}' does not exist")

    if file.stat().st_size == 0:
        logger.info(f"{title} file '{path}' is empty; ignoring")
        return {}

    values = dotenv_values(file)
    logger.debug(f"{title} file '{path}' applied ({len(values)} keys)")
    return {k: v for k, v in values.items() if v is not None}


def apply_layer(
    config: Config,
    layer: Mapping[str, str],
    source: str,
    strict: bool = True,
) -> Config:
    """
    Return a copy of `config` with recognized keys from `layer` applied.

    Unrecognized keys are ignored (and reported when `strict`).
    Unparseable values keep the previous layer's value.
    """
    changes = {}
    for key, raw in layer.items():
        if key not in KEYS:
            if strict:
                logger.warning(f"Unknown key '{key}' in {source}; ignoring")
            continue

        field_name, parse = KEYS[key]
        try:
            changes[field_name] = parse(raw)
        except ValueError:
            logger.warning(
                f"Invalid value {raw!r} for {key} in {source}; "
                f"keeping {getattr(config, field_name)!r}"
            )

    return replace(config, **changes) if changes else config


def _validate(config: Config) -> Config:
    level = config.logging_level
    clamped = min(max(level, LOGGING_LEVEL_MIN), LOGGING_LEVEL_MAX)
    if clamped != level:
        logger.warning(f"LOGGING_LEVEL={level} out of range; using {clamped}")
        config = replace(config, logging_level=clamped)

    if config.countdown_periods < 1:
        raise ConfigError(
            f"COUNTDOWN_PERIODS must be at least 1 (got {config.countdown_periods})"
        )

    if config.thingsboard_fail_count < 1:
        raise ConfigError(
            f"THINGSBOARD_FAIL_COUNT must be at least 1 (got {config.thingsboard_fail_count})"
        )

    if config.ping_timeout_s < 1:
        raise ConfigError(f"PING_TIMEOUT must be at least 1 (got {config.ping_timeout_s})")

    for key, value in (
        ("RELAY_SETTLE_DELAY", config.relay_settle_delay_s),
        ("THINGSBOARD_FAIL_DELAY", config.thingsboard_fail_delay_s),
    ):
        if value < 0:
            raise ConfigError(f"{key} must not be negative (got {value})")

    return config


def load_config(
    config_file: Optional[str] = None,
    credentials_file: Optional[str] = None,
    overrides: Optional[Mapping[str, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """
    Build the immutable configuration from all layers.

    Args:
        config_file: Optional general configuration file (KEY=value).
        credentials_file: Optional credentials file, e.g. THINGSBOARD_TOKEN.
        overrides: Command line values, keyed like the files.
        environ: Environment mapping; defaults to os.environ after loading .env.

    Raises:
        ConfigError: A declared file is missing or a value is unusable.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    config = Config()

    # Environment carries plenty of unrelated variables, so no warnings here
    config = apply_layer(config, environ, "environment", strict=False)

    if config_file:
        config = apply_layer(
            config, read_layer_file(config_file, "Configuration"), config_file
        )

    if credentials_file:
        config = apply_layer(
            config, read_layer_file(credentials_file, "Credentials"), credentials_file
        )

    if overrides:
        config = apply_layer(config, overrides, "command line")

    return _validate(config)
