# ─── Standard library imports ───
from enum import Enum
from typing import Iterable, Optional

# ─── Project imports ───
from .config import Overrides
from .logger import get_logger
from .utils import ping_host
from .power_source import PowerState, PowerSourceReader


logger = get_logger("probes")


class ConnectivityState(Enum):
    UP = "up"
    DOWN = "down"

    def __str__(self) -> str:
        return self.name


class AuxDeviceState(Enum):
    UP = "up"
    DOWN = "down"

    def __str__(self) -> str:
        return self.name


class SensorProbes:
    """
    Raw signal readers for one invocation.

    Each probe has a normal mode plus forced-true / forced-false modes
    selected by `Overrides`; forced modes return before any I/O.
    Probe failures are indistinguishable from a negative reading.
    """

    def __init__(
        self,
        reader: PowerSourceReader,
        overrides: Overrides = Overrides(),
        ping_timeout: int = 5,
    ):
        self.reader = reader
        self.overrides = overrides
        self.ping_timeout = ping_timeout

    def probe_power(self) -> PowerState:
        if self.overrides.force_mains:
            return PowerState.MAINS
        if self.overrides.force_battery:
            return PowerState.BATTERY
        return self.reader.read()

    def probe_connectivity(self, ip_list: Iterable[str]) -> ConnectivityState:
        """
        Probe external addresses in order; the first reply wins.
        DOWN only after every address failed.
        """
        if self.overrides.force_inet:
            return ConnectivityState.UP
        if self.overrides.force_noinet:
            return ConnectivityState.DOWN

        for ip in ip_list:
            if ping_host(ip, timeout=self.ping_timeout):
                logger.debug(f"Internet reachable via {ip}")
                return ConnectivityState.UP
            logger.debug(f"No reply from {ip}")

        return ConnectivityState.DOWN

    def probe_aux(self, ip: Optional[str]) -> Optional[AuxDeviceState]:
        """
        Probe an auxiliary device (camera).

        Returns None when the device has no address configured and no
        forced mode applies: its state is indeterminate.
        """
        if self.overrides.force_cam:
            return AuxDeviceState.UP
        if self.overrides.force_nocam:
            return AuxDeviceState.DOWN
        if not ip:
            return None

        if ping_host(ip, timeout=self.ping_timeout):
            return AuxDeviceState.UP
        return AuxDeviceState.DOWN
