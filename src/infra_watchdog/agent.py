# --- Standard library imports ---
import json
import logging

# --- Project imports ---
from .config import Config
from .logger import get_logger
from .status import SEP, StatusSink
from .errors import FatalError, TelemetryError
from .run_state import RunStateStore
from .power_cycle import PowerCycleFSM
from .thingsboard import ThingsBoardClient
from .power_source import PowerState
from .telemetry import Signals, build_payload, tlog
from .probes import AuxDeviceState, ConnectivityState, SensorProbes


class InfraWatchdog:
    """
    One monitor → decide → act → report pass over the site infrastructure.

    Workflow:
    1. Mains power (gates everything below)
    2. Internet connectivity, then the router power-cycle state machine
    3. Cameras, only when the internet is up
    4. Telemetry to ThingsBoard

    Run state is loaded at the start and saved on the way out, also when
    telemetry fails: the relay decision stands regardless of reporting.
    """

    def __init__(
        self,
        config: Config,
        probes: SensorProbes,
        store: RunStateStore,
        fsm: PowerCycleFSM,
        publisher: ThingsBoardClient,
        status: StatusSink,
    ):
        self.config = config
        self.probes = probes
        self.store = store
        self.fsm = fsm
        self.publisher = publisher
        self.status = status
        self.logger = get_logger("agent")

    def run_once(self) -> Signals:
        """
        Execute a single invocation.

        Returns:
            The signals observed this cycle.

        Raises:
            FatalError: Telemetry payload empty or delivery failed.
        """
        self.status.clear()
        state = self.store.load()
        signals = Signals(run_state=state)

        try:
            signals.power = self._check_mains()

            # Host on battery: rebooting the router would be pointless
            if signals.power is PowerState.MAINS:
                signals.connectivity = self._check_inet(state.countdown)
                outcome = self.fsm.transition(signals.connectivity, state)
                self.logger.debug(f"Power cycle verdict: {outcome.verdict}")

                if signals.connectivity is ConnectivityState.UP:
                    signals.camera_front = self._check_camera("front", self.config.camera_front_ip)
                    signals.camera_back = self._check_camera("back", self.config.camera_back_ip)

            self._send(signals)
        finally:
            self.store.save(state, signals.connectivity)

        return signals

    # ─── Probes ───

    def _check_mains(self) -> PowerState:
        power = self.probes.probe_power()
        level = logging.INFO if power is PowerState.MAINS else logging.ERROR
        self.status.log(level, f"Checking mains power supply status{SEP}{power}")
        return power

    def _check_inet(self, countdown: int) -> ConnectivityState:
        connectivity = self.probes.probe_connectivity(self.config.inet_ips)
        msg = "Checking internet connection status"
        if connectivity is ConnectivityState.DOWN:
            # Which outage period this is, counted from 1
            msg += f" ({self.config.countdown_periods - countdown + 1})"
            self.status.log(logging.ERROR, f"{msg}{SEP}{connectivity}")
        else:
            self.status.log(logging.INFO, f"{msg}{SEP}{connectivity}")
        return connectivity

    def _check_camera(self, name: str, ip: str | None) -> AuxDeviceState | None:
        camera = self.probes.probe_aux(ip)
        if camera is None:
            self.logger.debug(f"Camera '{name}' not configured; skipping")
            return None
        level = logging.INFO if camera is AuxDeviceState.UP else logging.ERROR
        self.status.log(level, f"Checking camera status{SEP}{name}{SEP}{camera}")
        return camera

    # ─── Telemetry ───

    def _send(self, signals: Signals) -> None:
        msg = "HTTP request to ThingsBoard"
        try:
            payload = build_payload(signals)
        except FatalError:
            self.status.status(f"Sending to ThingsBoard{SEP}no payload", level=logging.ERROR)
            raise

        self.status.status(f"{msg}{SEP}{json.dumps(payload)}")
        try:
            code = self.publisher.publish(payload)
        except TelemetryError as e:
            level = logging.WARNING if e.silent else logging.CRITICAL
            self.status.status(f"{msg}{SEP}HTTP status code {e.status_code}", level=level)
            raise

        tlog(self.logger, "📡", "THINGSBOARD", "SENT", primary=f"HTTP {code}", meta=str(payload))
        self.status.status(f"{msg}{SEP}HTTP status code {code}")
