import logging

import pytest
from unittest.mock import patch

from infra_watchdog.relay import CONTROL_BYTES, INIT_SEQUENCE, RelayActuator, RelayState


# ========
# FIXTURES
# ========
@pytest.fixture(autouse=True)
def mock_sleep():
    """Bypass the board settle delay"""
    with patch("infra_watchdog.relay.time.sleep", return_value=None) as mock:
        yield mock


@pytest.fixture
def device(tmp_path):
    path = tmp_path / "ttyUSB0"
    path.write_bytes(b"")
    return path


# ===================================
# TEST GROUP: Pure State Transitions
# ===================================
@pytest.mark.parametrize(
    "current, expected_state, expected_byte",
    [
        # 🔴 Energize both relays → NC contacts open → router off
        (RelayState.DE_ENERGIZED, RelayState.ENERGIZED, 0x03),

        # 🟢 Release both relays → NC contacts close → router on
        (RelayState.ENERGIZED, RelayState.DE_ENERGIZED, 0x00),
    ],
)
def test_toggle(current, expected_state, expected_byte):
    assert RelayActuator.toggle(current) == (expected_state, expected_byte)


def test_router_powered_follows_nc_wiring():
    assert RelayState.DE_ENERGIZED.router_powered is True
    assert RelayState.ENERGIZED.router_powered is False


# ==========================
# TEST GROUP: Device Writes
# ==========================
def test_initialize_device_writes_sequence_and_settles(device, mock_sleep):
    actuator = RelayActuator(str(device), settle_delay_s=1.0)

    assert actuator.initialize_device() is True
    assert device.read_bytes() == bytes.fromhex("50 50 50 50 51 52 00 00")
    assert device.read_bytes() == INIT_SEQUENCE
    mock_sleep.assert_called_once_with(1.0)


def test_apply_writes_single_control_byte(device):
    actuator = RelayActuator(str(device))

    assert actuator.apply(CONTROL_BYTES[RelayState.ENERGIZED]) is True
    assert device.read_bytes() == b"\x03"


def test_suppressed_actuator_never_writes(device, mock_sleep):
    """Simulation / ignore-relay: nothing reaches the device"""
    actuator = RelayActuator(str(device), suppressed=True)

    assert actuator.initialize_device() is True
    assert actuator.apply(0x03) is True
    assert device.read_bytes() == b""
    mock_sleep.assert_not_called()


def test_write_failure_is_reported_not_raised(tmp_path, caplog):
    """Device gone (USB unplugged) → False plus a warning"""
    actuator = RelayActuator(str(tmp_path / "missing" / "ttyUSB0"))

    with caplog.at_level(logging.WARNING):
        assert actuator.apply(0x00) is False
    assert "Relay write" in caplog.text
