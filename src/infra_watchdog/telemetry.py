# --- Standard library imports ---
import logging
from dataclasses import dataclass
from typing import Optional

# --- Project imports ---
from .errors import FatalError
from .run_state import RunState
from .relay import RelayState
from .power_source import PowerState
from .probes import AuxDeviceState, ConnectivityState


def tlog(
    logger: logging.Logger,
    emoji: str,
    subsystem: str,
    state: str,
    primary: str = "—--",
    meta: str | None = None,
) -> None:
    """
    Emit a standardized telemetry log "tlog" line.

    Format:
        SUBSYSTEM STATE PRIMARY | meta data
    """
    msg = f"{subsystem:<12} {state:<20} {primary:<16}"
    if meta:
        msg += f" | {meta}"

    logger.info(f"{emoji} {msg}", stacklevel=2)


@dataclass
class Signals:
    """
    Everything observed during one invocation.

    None marks a signal that was not evaluated (gated off upstream) or
    whose value is indeterminate.
    """
    power: PowerState = PowerState.UNKNOWN
    connectivity: Optional[ConnectivityState] = None
    run_state: Optional[RunState] = None
    camera_front: Optional[AuxDeviceState] = None
    camera_back: Optional[AuxDeviceState] = None


def _relay_item(signals: Signals) -> Optional[bool]:
    """
    Relay field: reported after a toggle (true = router powered again),
    consuming the toggle flag. Without a toggle, an UP connection while the
    record still says power is cut means the router was powered from
    outside the watchdog.
    """
    state = signals.run_state
    if state is None:
        return None

    if state.toggled:
        state.toggled = False
        return state.relay.router_powered

    if (
        signals.connectivity is ConnectivityState.UP
        and state.relay is RelayState.ENERGIZED
    ):
        return True

    return None


def build_payload(signals: Signals) -> dict[str, bool]:
    """
    Compose the ThingsBoard telemetry object.

    Field order: powerSupply, inetConnect, inetRelay, cameraFront, cameraBack.
    Internet and relay fields only at mains power, camera fields only when
    the internet is up as well. Indeterminate values are left out.

    Raises:
        FatalError: Nothing to report.
    """
    payload: dict[str, bool] = {}

    if signals.power is not PowerState.UNKNOWN:
        payload["powerSupply"] = signals.power is PowerState.MAINS

    if signals.power is PowerState.MAINS:
        if signals.connectivity is not None:
            payload["inetConnect"] = signals.connectivity is ConnectivityState.UP

        relay = _relay_item(signals)
        if relay is not None:
            payload["inetRelay"] = relay

        if signals.connectivity is ConnectivityState.UP:
            for key, device in (
                ("cameraFront", signals.camera_front),
                ("cameraBack", signals.camera_back),
            ):
                if device is not None:
                    payload[key] = device is AuxDeviceState.UP

    if not payload:
        raise FatalError("Sending to ThingsBoard failed with no payload")

    return payload
