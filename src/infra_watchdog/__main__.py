# --- Standard library imports ---
import sys
import socket
import logging
import argparse
from typing import Optional, Sequence

# --- Project imports ---
from . import __version__
from .agent import InfraWatchdog
from .bootstrap import bootstrap
from .status import StatusSink
from .probes import SensorProbes
from .relay import RelayActuator
from .run_state import RunStateStore
from .power_cycle import PowerCycleFSM
from .thingsboard import ThingsBoardClient
from .errors import ConfigError, FatalError
from .logger import get_logger, setup_logging
from .config import Config, Overrides, load_config


COPYRIGHT = "(c) 2021 Libor Gabaj <libor.gabaj@gmail.com>"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="infra-watchdog",
        description=(
            "Check mains power, internet and camera status, report it to "
            "ThingsBoard and power-cycle the router through a USB relay "
            "board after a sustained internet outage."
        ),
    )
    parser.add_argument("relay_device", nargs="?", help="device file of the relay board, e.g. /dev/ttyUSB0")
    parser.add_argument("state_file", nargs="?", help="alternative file for persisting working variables")
    parser.add_argument("-s", "--simulate", action="store_true", help="dry run: no relay writes, nothing sent")
    parser.add_argument("-c", "--configs", action="store_true", help="list configuration parameters")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__} - {COPYRIGHT}")
    parser.add_argument("-l", "--logging-level", type=int, metavar="0-4",
                        help="syslog intensity: 0=none, 1=errors, 2=warnings, 3=info, 4=full")
    parser.add_argument("-f", "--config-file", help="configuration file (KEY=value)")
    parser.add_argument("-p", "--credentials-file", help="credentials file (KEY=value)")
    parser.add_argument("-t", "--status-file", help="tick file for the working status")
    parser.add_argument("--init-relay", action="store_true", help="only initialize the relay board and exit")

    forced = parser.add_argument_group("forced modes")
    forced.add_argument("-0", dest="ignore_relay", action="store_true", help="never touch the relay")
    forced.add_argument("-1", dest="force_mains", action="store_true", help="pretend mains power supply")
    forced.add_argument("-2", dest="force_battery", action="store_true", help="pretend battery power supply")
    forced.add_argument("-3", dest="force_inet", action="store_true", help="pretend working internet")
    forced.add_argument("-4", dest="force_noinet", action="store_true", help="pretend failed internet")
    forced.add_argument("-5", dest="force_cam", action="store_true", help="pretend working cameras")
    forced.add_argument("-6", dest="force_nocam", action="store_true", help="pretend failed cameras")
    return parser.parse_args(argv)


def cli_overrides(args: argparse.Namespace) -> dict[str, str]:
    """Command line values keyed like the configuration files."""
    values = {
        "RELAY_DEVICE": args.relay_device,
        "STATE_FILE": args.state_file,
        "STATUS_FILE": args.status_file,
        "LOGGING_LEVEL": None if args.logging_level is None else str(args.logging_level),
    }
    return {k: v for k, v in values.items() if v is not None}


def print_summary(config: Config) -> None:
    logger = get_logger("main")
    logger.info("===== Configuration =====")
    for key, value in config.summary().items():
        logger.info(f"{key:<28} {value}")
    logger.info("=========================")


def build_watchdog(config: Config, overrides: Overrides) -> InfraWatchdog:
    """Wire the components for one invocation."""
    capabilities = bootstrap(config, overrides)
    status = StatusSink(config.status_file)
    actuator = RelayActuator(
        config.relay_device,
        settle_delay_s=config.relay_settle_delay_s,
        suppressed=overrides.dry_run or overrides.ignore_relay,
    )
    return InfraWatchdog(
        config=config,
        probes=SensorProbes(capabilities.power_source, overrides, config.ping_timeout_s),
        store=RunStateStore(config.state_file, config.countdown_periods),
        fsm=PowerCycleFSM(config.countdown_periods, actuator, status),
        publisher=ThingsBoardClient(config, dry_run=overrides.dry_run),
        status=status,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Entry point for one scheduled invocation.

    Returns:
        0 on success or a silent failure, 1 on a fatal error.
    """
    args = parse_args(argv)
    overrides = Overrides(
        dry_run=args.simulate,
        ignore_relay=args.ignore_relay,
        force_mains=args.force_mains,
        force_battery=args.force_battery,
        force_inet=args.force_inet,
        force_noinet=args.force_noinet,
        force_cam=args.force_cam,
        force_nocam=args.force_nocam,
    )

    setup_logging()
    logger = get_logger("main")

    try:
        config = load_config(args.config_file, args.credentials_file, cli_overrides(args))
    except ConfigError as e:
        logger.critical(f"{e}")
        return 1

    setup_logging(
        level=logging.getLevelName(config.log_level),
        logging_level=config.logging_level,
    )
    logger.info(f"🚀 Starting infra_watchdog {__version__} for system {socket.gethostname()}")
    if overrides.dry_run:
        logger.info("Simulation mode: relay and ThingsBoard untouched")
    if overrides.forced:
        logger.info(f"Forced modes active: {overrides}")

    if args.configs:
        print_summary(config)

    try:
        if args.init_relay:
            actuator = RelayActuator(
                config.relay_device,
                settle_delay_s=config.relay_settle_delay_s,
                suppressed=overrides.dry_run,
            )
            if not actuator.initialize_device():
                logger.critical(f"Relay '{config.relay_device}' initialization failed")
                return 1
            logger.info(f"Relay '{config.relay_device}' initialized")
            return 0

        build_watchdog(config, overrides).run_once()

    except ConfigError as e:
        logger.critical(f"{e}")
        return 1

    except FatalError as e:
        if e.silent:
            logger.warning(f"{e}")
        else:
            logger.critical(f"{e}")
        return e.exit_code

    except Exception as e:
        logger.exception(f"Unhandled exception during run: {e}")
        return 1

    finally:
        logger.info("Stopping infra_watchdog")

    return 0


if __name__ == "__main__":
    sys.exit(main())
