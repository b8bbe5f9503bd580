# --- Standard library imports ---
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

# --- Third-party imports ---
from dotenv import dotenv_values

# --- Project imports ---
from .logger import get_logger
from .relay import RelayState
from .probes import ConnectivityState


logger = get_logger("run_state")


@dataclass
class RunState:
    """
    Working variables carried between invocations.

    Mutated only by the power-cycle state machine; the toggle flag is
    consumed by the telemetry publisher.
    """
    relay: RelayState
    countdown: int
    toggled: bool = False

    @classmethod
    def initial(cls, threshold: int) -> "RunState":
        # Router powered, fresh countdown
        return cls(relay=RelayState.DE_ENERGIZED, countdown=threshold, toggled=False)


class RunStateStore:
    """
    Durable KEY=value record of the RunState.

    The record exists only while an outage is being handled: it is written
    while connectivity is DOWN and deleted as soon as it is UP, so its mere
    presence means "countdown in progress". A missing, empty or corrupt
    record loads as the initial state.
    """

    def __init__(self, path: str, threshold: int):
        self.path = Path(path)
        self.threshold = threshold

    def load(self) -> RunState:
        try:
            if self.path.stat().st_size == 0:
                return RunState.initial(self.threshold)
            values = dotenv_values(self.path)
        except FileNotFoundError:
            return RunState.initial(self.threshold)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Run state '{self.path}' unreadable ({e.__class__.__name__}); starting fresh")
            return RunState.initial(self.threshold)

        try:
            state = RunState(
                relay=RelayState[values["RELAY"]],
                countdown=int(values["PERIOD"]),
                toggled=values.get("TOGGLE", "0") == "1",
            )
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Run state '{self.path}' corrupt; starting fresh")
            return RunState.initial(self.threshold)

        logger.debug(f"Run state loaded: {state}")
        return state

    def save(self, state: RunState, connectivity: Optional[ConnectivityState]) -> None:
        """
        Persist while connectivity is DOWN, delete once it is UP.

        Nothing happens when connectivity was not evaluated this
        invocation (no mains power).
        """
        if connectivity is None:
            return

        if connectivity is ConnectivityState.DOWN:
            self.path.write_text(
                f"RELAY={state.relay.name}\n"
                f"PERIOD={state.countdown}\n"
                f"TOGGLE={int(state.toggled)}\n"
            )
            logger.debug(f"Run state saved: {state}")
        elif self.path.exists():
            self.path.unlink()
            logger.debug("Run state cleared (connectivity restored)")
