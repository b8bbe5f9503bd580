import pytest
import requests
import responses
from unittest.mock import patch

from infra_watchdog.__main__ import main, parse_args, cli_overrides


HOST = "http://tb.local:8080"
TOKEN = "TOKEN"
URL = f"{HOST}/api/v1/{TOKEN}/telemetry"


# ========
# FIXTURES
# ========
@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    """No .env pick-up, no real delays, no stray environment settings"""
    monkeypatch.chdir(tmp_path)
    for key in ("LOG_LEVEL", "LOGGING_LEVEL", "THINGSBOARD_HOST", "THINGSBOARD_TOKEN", "STATUS_FILE"):
        monkeypatch.delenv(key, raising=False)
    with patch("infra_watchdog.thingsboard.time.sleep", return_value=None), \
         patch("infra_watchdog.relay.time.sleep", return_value=None):
        yield


@pytest.fixture
def site(tmp_path):
    device = tmp_path / "ttyUSB0"
    device.write_bytes(b"")
    creds = tmp_path / "watchdog.cred"
    creds.write_text(f"THINGSBOARD_HOST={HOST}\nTHINGSBOARD_TOKEN={TOKEN}\n")
    return {
        "device": str(device),
        "state": str(tmp_path / "infra_watchdog.dat"),
        "status": tmp_path / "infra_watchdog.inf",
        "creds": str(creds),
    }


def argv(site, *flags):
    return [
        "-p", site["creds"],
        "-t", str(site["status"]),
        "-l", "0",
        *flags,
        site["device"],
        site["state"],
    ]


# ==========================
# TEST GROUP: Exit Codes
# ==========================
@responses.activate
def test_success_exit_zero(site):
    responses.add(responses.POST, URL, status=200)

    assert main(argv(site, "-1", "-3")) == 0
    assert len(responses.calls) == 1


@responses.activate
def test_unreachable_backend_exits_zero_silently(site, capsys):
    """Connection refused ×4 → exit 0, no fatal line, status records the attempt"""
    responses.add(responses.POST, URL, body=requests.ConnectionError("refused"))

    assert main(argv(site, "-1", "-4")) == 0

    captured = capsys.readouterr()
    assert "🔥" not in captured.out
    assert len(responses.calls) == 4
    status = site["status"].read_text()
    assert "HTTP request to ThingsBoard ... {" in status
    assert "HTTP status code 0" in status
    assert "FATAL" not in status


@responses.activate
def test_rejecting_backend_exits_one(site, capsys):
    """HTTP 500 ×4 → exit 1, fatal error logged"""
    responses.add(responses.POST, URL, status=500)

    assert main(argv(site, "-1", "-3")) == 1

    captured = capsys.readouterr()
    assert "🔥" in captured.out
    assert "HTTP status code 500" in captured.out
    assert len(responses.calls) == 4


def test_missing_relay_device_is_fatal(site, tmp_path):
    args = argv(site, "-1", "-3")
    args[-2] = str(tmp_path / "no-such-device")

    assert main(args) == 1
    # Aborted before probing: no status lines written
    assert not site["status"].exists()


@responses.activate
def test_negative_fail_delay_aborts_before_probing(site, monkeypatch):
    monkeypatch.setenv("THINGSBOARD_FAIL_DELAY", "-1")
    responses.add(responses.POST, URL, body=requests.ConnectionError("refused"))

    assert main(argv(site, "-1", "-4")) == 1
    assert len(responses.calls) == 0
    assert not site["status"].exists()


@responses.activate
def test_bogus_log_level_falls_back_to_info(site, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "BASIC_FORMAT")
    responses.add(responses.POST, URL, status=200)

    assert main(argv(site, "-1", "-3")) == 0


def test_missing_config_file_is_fatal(site, tmp_path):
    assert main(["-f", str(tmp_path / "missing.conf"), *argv(site, "-1", "-3")]) == 1


def test_simulation_needs_no_backend(site):
    with patch("infra_watchdog.thingsboard.requests.post") as post:
        assert main(["-s", "-1", "-4", "-t", str(site["status"]), site["device"], site["state"]]) == 0

    post.assert_not_called()


def test_init_relay_only(site):
    assert main(["--init-relay", "-p", site["creds"], site["device"]]) == 0

    with open(site["device"], "rb") as fh:
        assert fh.read() == bytes.fromhex("50 50 50 50 51 52 00 00")


# ==============================
# TEST GROUP: Argument Mapping
# ==============================
def test_cli_overrides_keyed_like_files():
    args = parse_args(["-l", "3", "-t", "/tmp/x.inf", "/dev/ttyUSB0"])

    assert cli_overrides(args) == {
        "RELAY_DEVICE": "/dev/ttyUSB0",
        "STATUS_FILE": "/tmp/x.inf",
        "LOGGING_LEVEL": "3",
    }


def test_forced_flags_parsed():
    args = parse_args(["-0", "-2", "-6"])

    assert (args.ignore_relay, args.force_battery, args.force_nocam) == (True, True, True)
    assert args.force_mains is False
