"""
Startup configuration.

Settings come from environment variables. A .env file in the working
directory is loaded first, values already present in the process
environment win.
"""

from __future__ import annotations

import ipaddress
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from dotenv import find_dotenv, load_dotenv

from .core.dispatch import RetryPolicy
from .core.scope import DEFAULT_SCOPE_NETWORKS, parse_networks
from .errors import ConfigError

REQUIRED_VARS = ("INFLUXDB_URL", "INFLUXDB_TOKEN", "INFLUXDB_ORG", "INFLUXDB_BUCKET")

DEFAULT_INPUT = "/dev/stdin"


@dataclass(frozen=True)
class ForwarderConfig:
    """
    Validated startup parameters. Created once, read only afterwards.
    """

    influxdb_url: str
    influxdb_token: str = field(repr=False)
    influxdb_org: str
    influxdb_bucket: str
    input_file: str = DEFAULT_INPUT
    batch_size: int = 100
    flush_interval_seconds: float = 10.0
    retry_attempts: int = 3
    retry_delay_ms: int = 1000
    scope_networks: Tuple[ipaddress.IPv4Network, ...] = DEFAULT_SCOPE_NETWORKS
    influxdb_timeout_seconds: float = 10.0
    progress_every: int = 1000
    log_level: str = "INFO"

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry_attempts,
            delay_seconds=self.retry_delay_ms / 1000.0,
        )

    def redacted(self) -> Dict[str, Any]:
        """
        Config as a dict that is safe to log or return from a tool.
        """
        return {
            "influxdb_url": self.influxdb_url,
            "influxdb_token": "***" if self.influxdb_token else "",
            "influxdb_org": self.influxdb_org,
            "influxdb_bucket": self.influxdb_bucket,
            "input_file": self.input_file,
            "batch_size": self.batch_size,
            "flush_interval_seconds": self.flush_interval_seconds,
            "retry_attempts": self.retry_attempts,
            "retry_delay_ms": self.retry_delay_ms,
            "scope_networks": [str(n) for n in self.scope_networks],
            "influxdb_timeout_seconds": self.influxdb_timeout_seconds,
            "progress_every": self.progress_every,
            "log_level": self.log_level,
        }


def _number(
    env: Mapping[str, str],
    name: str,
    default: Any,
    cast: Callable[[str], Any],
    check: Callable[[Any], bool],
    rule: str,
    problems: List[str],
) -> Any:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        problems.append(f"{name}={raw!r} is not a valid number")
        return default
    if not check(value):
        problems.append(f"{name}={raw!r} must be {rule}")
        return default
    return value


def load_config(environ: Optional[Mapping[str, str]] = None) -> ForwarderConfig:
    """
    Build a ForwarderConfig from environ, or from the process environment
    after loading .env when environ is None.

    Raises ConfigError listing every missing or invalid setting.
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True), override=False)
        environ = os.environ

    problems: List[str] = []

    required: Dict[str, str] = {}
    for name in REQUIRED_VARS:
        value = (environ.get(name) or "").strip()
        if not value:
            problems.append(f"{name} is required")
        required[name] = value

    batch_size = _number(environ, "BATCH_SIZE", 100, int, lambda v: v > 0, "a positive integer", problems)
    flush_interval = _number(
        environ,
        "FLUSH_INTERVAL_SECONDS",
        10.0,
        float,
        lambda v: math.isfinite(v) and v >= 0,
        "a finite number, zero or more",
        problems,
    )
    retry_attempts = _number(environ, "RETRY_ATTEMPTS", 3, int, lambda v: v > 0, "a positive integer", problems)
    retry_delay_ms = _number(environ, "RETRY_DELAY_MS", 1000, int, lambda v: v >= 0, "zero or more", problems)
    timeout = _number(
        environ,
        "INFLUXDB_TIMEOUT_SECONDS",
        10.0,
        float,
        lambda v: math.isfinite(v) and v > 0,
        "a finite positive number",
        problems,
    )
    progress_every = _number(environ, "PROGRESS_EVERY", 1000, int, lambda v: v > 0, "a positive integer", problems)

    scope_networks = DEFAULT_SCOPE_NETWORKS
    raw_scope = (environ.get("SCOPE_NETWORKS") or "").strip()
    if raw_scope:
        try:
            scope_networks = parse_networks(raw_scope.split(","))
        except ValueError as e:
            problems.append(f"SCOPE_NETWORKS: {e}")
        else:
            if not scope_networks:
                problems.append("SCOPE_NETWORKS must name at least one IPv4 network")

    log_level = (environ.get("LOG_LEVEL") or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        problems.append(f"LOG_LEVEL={log_level!r} is not a logging level")
        log_level = "INFO"

    input_file = (environ.get("GOFLOW2_INPUT_FILE") or "").strip() or DEFAULT_INPUT

    if problems:
        raise ConfigError(problems)

    return ForwarderConfig(
        influxdb_url=required["INFLUXDB_URL"],
        influxdb_token=required["INFLUXDB_TOKEN"],
        influxdb_org=required["INFLUXDB_ORG"],
        influxdb_bucket=required["INFLUXDB_BUCKET"],
        input_file=input_file,
        batch_size=batch_size,
        flush_interval_seconds=flush_interval,
        retry_attempts=retry_attempts,
        retry_delay_ms=retry_delay_ms,
        scope_networks=scope_networks,
        influxdb_timeout_seconds=timeout,
        progress_every=progress_every,
        log_level=log_level,
    )
