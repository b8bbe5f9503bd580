# ─── Standard library imports ───
import time
from enum import Enum

# ─── Project imports ───
from .logger import get_logger


# ICSE012A/013A/014A boards: 0x50 announces the host, 0x51 switches the
# board into control mode. Trailing bytes release both relays.
INIT_SEQUENCE = bytes.fromhex("50 50 50 50 51 52 00 00")


class RelayState(Enum):
    """
    Physical coil state of the relay board.

    The router hangs on the Normally Closed contacts, so a DE_ENERGIZED
    relay powers the router and an ENERGIZED relay cuts it off.
    """
    ENERGIZED = "energized"
    DE_ENERGIZED = "de-energized"

    def __str__(self) -> str:
        return self.name

    @property
    def router_powered(self) -> bool:
        return self is RelayState.DE_ENERGIZED


# Both relays on the board are driven together as one logical switch
CONTROL_BYTES = {
    RelayState.ENERGIZED: 0x03,
    RelayState.DE_ENERGIZED: 0x00,
}


class RelayActuator:
    """
    Write-only driver for a USB relay board exposed as a device file.

    Responsibilities:
    • Send the board initialization sequence
    • Compute state transitions (pure)
    • Write control bytes, unless suppressed

    Under simulation or the ignore-relay override no byte reaches the
    device, but callers still advance the logical state.
    """

    def __init__(self, device: str, settle_delay_s: float = 1.0, suppressed: bool = False):
        self.device = device
        self.settle_delay_s = settle_delay_s
        self.suppressed = suppressed
        self.logger = get_logger("relay")

    def _write(self, data: bytes) -> bool:
        if self.suppressed:
            self.logger.debug(f"Relay write suppressed [{data.hex(' ')}] → {self.device}")
            return True
        try:
            with open(self.device, "wb", buffering=0) as fh:
                fh.write(data)
        except OSError as e:
            self.logger.warning(
                f"Relay write to '{self.device}' failed ({e.__class__.__name__}: {e})"
            )
            return False
        return True

    def initialize_device(self) -> bool:
        """
        Send the initialization sequence and let the board settle.
        Boards reset silently on USB glitches, so callers resend it freely.
        """
        ok = self._write(INIT_SEQUENCE)
        if ok and not self.suppressed:
            time.sleep(self.settle_delay_s)
        return ok

    @staticmethod
    def toggle(current: RelayState) -> tuple[RelayState, int]:
        """Flip the relay state and return it with its control byte."""
        new_state = (
            RelayState.DE_ENERGIZED
            if current is RelayState.ENERGIZED
            else RelayState.ENERGIZED
        )
        return new_state, CONTROL_BYTES[new_state]

    def apply(self, control_byte: int) -> bool:
        """
        Write a control byte to the board.

        Returns:
            False when the device write failed; True otherwise,
            including suppressed writes.
        """
        return self._write(bytes([control_byte]))
