# ─── Standard library imports ───
from enum import Enum
from pathlib import Path
from typing import Optional

# ─── Project imports ───
from .logger import get_logger


logger = get_logger("power_source")

PROC_VERSION = Path("/proc/version")
POWER_SUPPLY_DIR = Path("/sys/class/power_supply")


class PowerState(Enum):
    MAINS = "mains"
    BATTERY = "battery"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.name


class PowerSourceReader:
    """
    Platform capability answering "is the host on mains power?".

    Subclasses know where their platform exposes the AC adapter state.
    Any read failure or unexpected content yields UNKNOWN.
    """

    name = "generic"
    source: Optional[Path] = None

    def read(self) -> PowerState:
        if self.source is None:
            return PowerState.UNKNOWN
        try:
            raw = self.source.read_text().strip()
        except OSError as e:
            logger.warning(f"Cannot read power source '{self.source}' ({e.__class__.__name__})")
            return PowerState.UNKNOWN
        return self.interpret(raw)

    def interpret(self, raw: str) -> PowerState:
        return PowerState.UNKNOWN

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(source={self.source})"


class OnlineFlagReader(PowerSourceReader):
    """Adapter `online` attribute: 1 = mains, 0 = battery."""

    def __init__(self, source: Path):
        self.source = source

    def interpret(self, raw: str) -> PowerState:
        if raw == "1":
            return PowerState.MAINS
        if raw == "0":
            return PowerState.BATTERY
        logger.warning(f"Unexpected value {raw!r} in '{self.source}'")
        return PowerState.UNKNOWN


class Wsl2Reader(OnlineFlagReader):
    name = "wsl2"

    def __init__(self, root: Path = POWER_SUPPLY_DIR):
        super().__init__(root / "AC1" / "online")


class LinuxReader(OnlineFlagReader):
    name = "linux"

    def __init__(self, root: Path = POWER_SUPPLY_DIR):
        super().__init__(root / "ADP1" / "online")


class Wsl1Reader(PowerSourceReader):
    """WSL1 only exposes the battery status; discharging means no mains."""

    name = "wsl1"

    def __init__(self, root: Path = POWER_SUPPLY_DIR):
        self.source = root / "battery" / "status"

    def interpret(self, raw: str) -> PowerState:
        if raw == "Discharging":
            return PowerState.BATTERY
        return PowerState.MAINS


def detect_power_source(
    proc_version: Path = PROC_VERSION,
    root: Path = POWER_SUPPLY_DIR,
) -> PowerSourceReader:
    """
    Select the power source reader once at startup.

    Order matters: WSL2 kernels also mention Microsoft and Linux,
    WSL1 kernels also mention Linux.
    """
    try:
        version = proc_version.read_text()
    except OSError:
        version = ""

    if "WSL" in version:
        reader = Wsl2Reader(root)
    elif "Microsoft" in version:
        reader = Wsl1Reader(root)
    elif "Linux" in version:
        reader = LinuxReader(root)
    else:
        reader = PowerSourceReader()

    logger.debug(f"Power source reader: {reader!r}")
    return reader
