# ─── Standard library imports ───
import logging
from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional

# ─── Project imports ───
from .telemetry import tlog
from .logger import get_logger
from .status import SEP, StatusSink
from .run_state import RunState
from .probes import ConnectivityState
from .relay import RelayActuator, RelayState


class CycleVerdict(Enum):
    STABLE_UP = auto()       # connectivity UP, router powered
    COUNTING_DOWN = auto()   # connectivity DOWN, countdown still running
    TRIGGERED = auto()       # countdown expired this cycle, relay toggled
    RESTORED = auto()        # connectivity UP while power was cut, relay toggled back

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class CycleOutcome:
    verdict: CycleVerdict
    relay: RelayState
    countdown: int
    control_byte: Optional[int] = None
    written: bool = True

    @property
    def toggled(self) -> bool:
        return self.control_byte is not None


class PowerCycleFSM:
    """
    Router power-cycle state machine, evaluated once per invocation.

    Invariants:
      - countdown decrements only on DOWN observations
      - reaching zero toggles exactly once, then re-arms the countdown
      - the board is (re)initialized right before every power cut
      - UP with power cut restores power at once, whatever the countdown

    While the outage lasts the machine alternates: count → cut power →
    count (router discharges) → restore power → count ...
    """

    def __init__(
        self,
        threshold: int,
        actuator: RelayActuator,
        status: Optional[StatusSink] = None,
    ):
        self.threshold = threshold
        self.actuator = actuator
        self.status = status
        self.logger = get_logger("power_cycle")

    def transition(self, connectivity: ConnectivityState, state: RunState) -> CycleOutcome:
        """
        Apply this cycle's connectivity verdict to the run state (in place).
        """
        if connectivity is ConnectivityState.DOWN:
            state.countdown -= 1
            tlog(
                self.logger,
                "🟡",
                "RELAY",
                "COUNTDOWN",
                primary=f"period={state.countdown}",
                meta=f"inet={connectivity} | relay={state.relay}",
            )
            if state.countdown > 0:
                return CycleOutcome(CycleVerdict.COUNTING_DOWN, state.relay, state.countdown)
            return self._toggle(state, CycleVerdict.TRIGGERED)

        if state.relay is RelayState.ENERGIZED:
            return self._toggle(state, CycleVerdict.RESTORED)

        return CycleOutcome(CycleVerdict.STABLE_UP, state.relay, state.countdown)

    def _toggle(self, state: RunState, verdict: CycleVerdict) -> CycleOutcome:
        device = self.actuator.device
        new_relay, control_byte = RelayActuator.toggle(state.relay)

        written = True
        if new_relay is RelayState.ENERGIZED:
            # Boards forget their mode after a USB reset, so always re-init before a cut
            written = self.actuator.initialize_device()
            if written and not self.actuator.suppressed:
                self._report(logging.WARNING, f"Initializing relay '{device}'")

        if written:
            written = self.actuator.apply(control_byte)

        state.relay = new_relay
        state.countdown = self.threshold
        state.toggled = True

        suffix = " ... intact" if self.actuator.suppressed else ""
        self._report(
            logging.WARNING,
            f"Toggling relay '{device}'{suffix}{SEP}to {new_relay} by {control_byte:02x}",
        )
        if not written:
            self._report(logging.ERROR, f"Relay '{device}' did not accept control byte {control_byte:02x}")

        tlog(
            self.logger,
            "🔴" if new_relay is RelayState.ENERGIZED else "🟢",
            "RELAY",
            str(verdict),
            primary="router power cut" if new_relay is RelayState.ENERGIZED else "router power restored",
            meta=f"byte={control_byte:02x} | written={written}",
        )

        return CycleOutcome(verdict, new_relay, state.countdown, control_byte, written)

    def _report(self, level: int, message: str) -> None:
        if self.status is not None:
            self.status.status(message, level=level)
