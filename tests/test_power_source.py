import pytest

from infra_watchdog.power_source import (
    LinuxReader,
    PowerSourceReader,
    PowerState,
    Wsl1Reader,
    Wsl2Reader,
    detect_power_source,
)


# ========
# FIXTURES
# ========
@pytest.fixture
def sysfs(tmp_path):
    """Fake /sys/class/power_supply tree; returns a writer for attributes"""
    root = tmp_path / "power_supply"

    def _write(device: str, attribute: str, value: str):
        folder = root / device
        folder.mkdir(parents=True, exist_ok=True)
        (folder / attribute).write_text(value + "\n")
        return root

    _write.root = root
    return _write


@pytest.fixture
def proc_version(tmp_path):
    def _write(text: str):
        path = tmp_path / "version"
        path.write_text(text)
        return path
    return _write


# ==================================
# TEST GROUP: Platform Detection
# ==================================
@pytest.mark.parametrize(
    "version, expected_type",
    [
        # ✅ WSL2 kernels also mention Microsoft and Linux
        ("Linux version 5.15.90.1-microsoft-standard-WSL2", Wsl2Reader),

        # ✅ WSL1
        ("Linux version 4.4.0-19041-Microsoft", Wsl1Reader),

        # ✅ Plain Linux (Armbian, Raspberry Pi OS ...)
        ("Linux version 6.1.21-v8+ (dom@buildbot)", LinuxReader),

        # ⚠️ Unrecognized platform
        ("Darwin Kernel Version 23.0.0", PowerSourceReader),
    ],
)
def test_detect_power_source(proc_version, sysfs, version, expected_type):
    reader = detect_power_source(proc_version(version), sysfs.root)

    assert type(reader) is expected_type


def test_detect_without_proc_version(tmp_path, sysfs):
    reader = detect_power_source(tmp_path / "missing", sysfs.root)

    assert reader.read() is PowerState.UNKNOWN


# ==============================
# TEST GROUP: Reading the Source
# ==============================
@pytest.mark.parametrize(
    "reader_type, device, attribute, value, expected",
    [
        (LinuxReader, "ADP1", "online", "1", PowerState.MAINS),
        (LinuxReader, "ADP1", "online", "0", PowerState.BATTERY),
        (LinuxReader, "ADP1", "online", "garbage", PowerState.UNKNOWN),
        (Wsl2Reader, "AC1", "online", "1", PowerState.MAINS),
        (Wsl2Reader, "AC1", "online", "0", PowerState.BATTERY),
        (Wsl1Reader, "battery", "status", "Discharging", PowerState.BATTERY),
        (Wsl1Reader, "battery", "status", "Charging", PowerState.MAINS),
        (Wsl1Reader, "battery", "status", "Full", PowerState.MAINS),
    ],
)
def test_reader_interprets_source(sysfs, reader_type, device, attribute, value, expected):
    root = sysfs(device, attribute, value)

    assert reader_type(root).read() is expected


def test_unreadable_source_is_unknown(sysfs):
    """Missing attribute file → UNKNOWN, never an exception"""
    reader = LinuxReader(sysfs.root)

    assert reader.read() is PowerState.UNKNOWN
