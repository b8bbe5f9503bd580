from dataclasses import replace

import pytest
from unittest.mock import patch

from infra_watchdog.bootstrap import bootstrap
from infra_watchdog.config import Config, Overrides
from infra_watchdog.errors import ConfigError


# ========
# FIXTURES
# ========
@pytest.fixture
def config(tmp_path):
    device = tmp_path / "ttyUSB0"
    device.write_bytes(b"")
    return Config(
        relay_device=str(device),
        state_file=str(tmp_path / "var" / "infra_watchdog.dat"),
        status_file=str(tmp_path / "infra_watchdog.inf"),
    )


@pytest.fixture(autouse=True)
def ping_available():
    with patch("infra_watchdog.bootstrap.shutil.which", return_value="/bin/ping") as which:
        yield which


# ==============================
# TEST GROUP: Preflight Checks
# ==============================
def test_valid_setup_creates_state_folder(config, tmp_path):
    capabilities = bootstrap(config, Overrides())

    assert (tmp_path / "var").is_dir()
    assert capabilities.power_source is not None


@pytest.mark.parametrize(
    "overrides, should_raise",
    [
        (Overrides(), True),                   # ❌ real run needs the board
        (Overrides(dry_run=True), False),      # ✅ simulation
        (Overrides(ignore_relay=True), False), # ✅ relay ignored
    ],
)
def test_missing_relay_device(config, tmp_path, overrides, should_raise):
    config = replace(config, relay_device=str(tmp_path / "nope"))

    if should_raise:
        with pytest.raises(ConfigError):
            bootstrap(config, overrides)
    else:
        bootstrap(config, overrides)


def test_missing_status_folder_is_fatal(config, tmp_path):
    config = replace(config, status_file=str(tmp_path / "gone" / "x.inf"))

    with pytest.raises(ConfigError):
        bootstrap(config, Overrides())


def test_missing_ping_is_fatal(config, ping_available):
    ping_available.return_value = None

    with pytest.raises(ConfigError):
        bootstrap(config, Overrides())


def test_forced_connectivity_needs_no_ping(config, ping_available):
    ping_available.return_value = None

    bootstrap(config, Overrides(force_inet=True))
