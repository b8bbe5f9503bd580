# --- Standard library imports ---
import socket
import subprocess

# --- Project imports ---
from .logger import get_logger


# Define the logger once for the entire module
logger = get_logger("utils")

PING_COMMAND = "ping"


def ping_host(ip: str, timeout: int = 5) -> bool:
    """
    Send a single ICMP echo request and wait for one reply.

    Uses the system `ping` utility (`-c 1 -w <timeout>`), so no raw socket
    privileges are needed by this process.

    Args:
        ip: IP address or hostname to check.
        timeout: Deadline in seconds for the whole probe.

    Returns:
        True if a reply arrived before the deadline, False otherwise.
        A failure to run `ping` at all is logged and reported as False.
    """
    try:
        result = subprocess.run(
            [PING_COMMAND, "-c", "1", "-w", str(timeout), ip],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout + 2,
        )
    except subprocess.TimeoutExpired:
        logger.debug(f"ping {ip} exceeded {timeout}s deadline")
        return False
    except OSError as e:
        logger.error(f"Cannot run '{PING_COMMAND}' for {ip} ({e.__class__.__name__}: {e})")
        return False

    return result.returncode == 0


def is_valid_ip(ip: str) -> bool:
    """
    Validate an IPv4 address using socket.

    Args:
        ip: IPv4 address string to validate.

    Returns:
        True if the IPv4 address is valid, False otherwise.
    """

    try:
        socket.inet_pton(socket.AF_INET, ip)
        return True
    except (socket.error, TypeError):
        return False
