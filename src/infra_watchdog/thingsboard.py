# --- Standard library imports ---
import json
import time

# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import Config
from .logger import get_logger
from .errors import ConfigError, TelemetryError


# Status code used when no HTTP response arrived at all
NO_RESPONSE = 0

# Response body is tiny; only connecting may legitimately take a while
READ_TIMEOUT_S = 10


class ThingsBoardClient:
    """
    Delivers device telemetry to a ThingsBoard server over its HTTP
    device API: POST {host}/api/v1/{token}/telemetry.
    """

    def __init__(self, config: Config, dry_run: bool = False):
        self.logger = get_logger("thingsboard")
        self.dry_run = dry_run

        self.host = (config.thingsboard_host or "").rstrip("/")
        self.token = config.thingsboard_token
        self.fail_count = config.thingsboard_fail_count
        self.fail_delay_s = config.thingsboard_fail_delay_s
        self.code_ok = config.thingsboard_code_ok
        self.timeout = (config.thingsboard_timeout_s, READ_TIMEOUT_S)

        if not dry_run and not (self.host and self.token):
            raise ConfigError(
                "ThingsBoard host and token are required "
                "(THINGSBOARD_HOST, THINGSBOARD_TOKEN)"
            )

        self.headers = {"Content-Type": "application/json"}

    @property
    def url(self) -> str:
        return f"{self.host}/api/v1/{self.token}/telemetry"

    def _post(self, payload: dict) -> int:
        try:
            resp = requests.post(
                self.url,
                headers=self.headers,
                data=json.dumps(payload),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self.logger.debug(f"ThingsBoard POST failed ({e.__class__.__name__})")
            return NO_RESPONSE
        return resp.status_code

    def deliver(self, payload: dict) -> int:
        """
        POST the payload with bounded retries.

        Transport failures and unexpected status codes are retried
        `fail_count` times in total, `fail_delay_s` apart.

        Returns:
            The last HTTP status code, NO_RESPONSE (0) if the server never
            answered. Simulation returns the expected code without sending.
        """
        if self.dry_run:
            self.logger.info(f"ThingsBoard send skipped (dry run) | {payload}")
            return self.code_ok

        code = NO_RESPONSE
        for attempt in range(1, self.fail_count + 1):
            code = self._post(payload)
            if code == self.code_ok:
                self.logger.debug(f"ThingsBoard accepted telemetry ({attempt}/{self.fail_count})")
                return code

            self.logger.warning(
                f"ThingsBoard attempt {attempt}/{self.fail_count} failed | HTTP {code}"
            )
            if attempt < self.fail_count:
                time.sleep(self.fail_delay_s)

        return code

    def publish(self, payload: dict) -> int:
        """
        Deliver and classify the outcome.

        Raises:
            TelemetryError: Delivery failed; silent when the server was
                unreachable, loud when it answered with a wrong status.
        """
        code = self.deliver(payload)
        if code != self.code_ok:
            raise TelemetryError(
                f"HTTP request to ThingsBoard failed with HTTP status code {code}",
                status_code=code,
            )
        return code
