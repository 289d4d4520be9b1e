"""Typed configuration for the relay process."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from gnss_relay.core.config_loader import ConfigLoader
from gnss_relay.core.errors import ConfigurationError
from gnss_relay.modules.GPS.gps_core.constants import (
    DEFAULT_BAUD_RATE,
    DEFAULT_CONSUMER_QUEUE_SIZE,
    DEFAULT_DATA_BITS,
    DEFAULT_DELIVERY_PACING,
    DEFAULT_MIN_READ,
    DEFAULT_MIN_SATELLITES_IN_VIEW,
    DEFAULT_PORT,
    DEFAULT_REACQUIRE_DELAY,
    DEFAULT_STOP_BITS,
)
from gnss_relay.modules.GPS.gps_core.transports import SerialTransportOptions
from gnss_relay.modules.Traccar.traccar_core.constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_OPENGTS_PORT,
    DEFAULT_OSMAND_PORT,
    DEFAULT_T55_HANDSHAKE_DELAY,
    DEFAULT_T55_IDLE_TIMEOUT,
    DEFAULT_T55_PORT,
    PROTOCOL_OSMAND,
    SUPPORTED_PROTOCOLS,
)

DEFAULT_CONFIG_PATH = Path("config.txt")

# Flat key/value defaults; the types drive ConfigLoader's coercion
DEFAULTS: Dict[str, Any] = {
    "gps.enabled": True,
    "gps.port": DEFAULT_PORT,
    "gps.baud": DEFAULT_BAUD_RATE,
    "gps.data_bits": DEFAULT_DATA_BITS,
    "gps.stop_bits": DEFAULT_STOP_BITS,
    "gps.even": False,
    "gps.odd": False,
    "gps.min_read": DEFAULT_MIN_READ,
    "gps.char_timeout_ms": 0,
    "gps.rs485": False,
    "gps.rs485_high_during_send": False,
    "gps.rs485_high_after_send": False,
    "gps.tx_data": "",
    "gps.rx": True,
    "gps.min_satellites_in_view": DEFAULT_MIN_SATELLITES_IN_VIEW,
    "gps.reacquire_delay_s": DEFAULT_REACQUIRE_DELAY,
    "gps.console_logging": False,
    "gps.screen_logging": False,
    "distribution.pacing_s": DEFAULT_DELIVERY_PACING,
    "distribution.queue_size": DEFAULT_CONSUMER_QUEUE_SIZE,
    "traccar.enabled": False,
    "traccar.client_id": "",
    "traccar.protocols": PROTOCOL_OSMAND,
    "traccar.osmand.server_url": "http://localhost",
    "traccar.osmand.port": DEFAULT_OSMAND_PORT,
    "traccar.t55.server_ip": "localhost",
    "traccar.t55.port": DEFAULT_T55_PORT,
    "traccar.opengts.server_url": "http://localhost",
    "traccar.opengts.port": DEFAULT_OPENGTS_PORT,
    "traccar.http_timeout_s": DEFAULT_HTTP_TIMEOUT,
    "traccar.t55.handshake_delay_s": DEFAULT_T55_HANDSHAKE_DELAY,
    "traccar.t55.idle_timeout_s": DEFAULT_T55_IDLE_TIMEOUT,
    "retry.max_attempts": 3,
    "retry.base_delay_s": 1.0,
    "retry.max_delay_s": 10.0,
    "retry.backoff_factor": 2.0,
    "display.lcd_enabled": False,
    "display.oled_enabled": False,
    "log_level": "info",
    "log_file": "",
}


def parse_protocols(value: str) -> Tuple[str, ...]:
    """Split a comma list of protocol names, rejecting unknown ones."""
    names = []
    for part in str(value).split(","):
        name = part.strip().lower()
        if not name:
            continue
        if name not in SUPPORTED_PROTOCOLS:
            raise ConfigurationError(
                f"unknown traccar protocol {name!r} (expected one of {', '.join(SUPPORTED_PROTOCOLS)})"
            )
        if name not in names:
            names.append(name)
    return tuple(names)


@dataclass(slots=True)
class GPSSettings:
    enabled: bool = True
    serial: SerialTransportOptions = field(default_factory=SerialTransportOptions)
    min_satellites_in_view: int = DEFAULT_MIN_SATELLITES_IN_VIEW
    reacquire_delay_s: float = DEFAULT_REACQUIRE_DELAY
    console_logging: bool = False
    screen_logging: bool = False


@dataclass(slots=True)
class DistributionSettings:
    pacing_s: float = DEFAULT_DELIVERY_PACING
    queue_size: int = DEFAULT_CONSUMER_QUEUE_SIZE


@dataclass(slots=True)
class TraccarSettings:
    enabled: bool = False
    client_id: str = ""
    protocols: Tuple[str, ...] = (PROTOCOL_OSMAND,)
    osmand_server_url: str = "http://localhost"
    osmand_port: int = DEFAULT_OSMAND_PORT
    t55_server_ip: str = "localhost"
    t55_port: int = DEFAULT_T55_PORT
    opengts_server_url: str = "http://localhost"
    opengts_port: int = DEFAULT_OPENGTS_PORT
    http_timeout_s: float = DEFAULT_HTTP_TIMEOUT
    t55_handshake_delay_s: float = DEFAULT_T55_HANDSHAKE_DELAY
    t55_idle_timeout_s: float = DEFAULT_T55_IDLE_TIMEOUT


@dataclass(slots=True)
class RetrySettings:
    max_attempts: int = 3
    base_delay_s: float = 1.0
    max_delay_s: float = 10.0
    backoff_factor: float = 2.0


@dataclass(slots=True)
class DisplaySettings:
    lcd_enabled: bool = False
    oled_enabled: bool = False


@dataclass(slots=True)
class RelayConfig:
    """Typed configuration for the whole relay."""

    gps: GPSSettings = field(default_factory=GPSSettings)
    distribution: DistributionSettings = field(default_factory=DistributionSettings)
    traccar: TraccarSettings = field(default_factory=TraccarSettings)
    retry: RetrySettings = field(default_factory=RetrySettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)
    log_level: str = "info"
    log_file: Optional[Path] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], args: Any = None) -> "RelayConfig":
        """Build config from flat key/value pairs with optional CLI overrides.

        Raises:
            ConfigurationError: traccar.protocols names an unknown protocol
        """
        merged = dict(DEFAULTS)
        merged.update(values)

        serial = SerialTransportOptions(
            port=str(merged["gps.port"]),
            baud_rate=int(merged["gps.baud"]),
            data_bits=int(merged["gps.data_bits"]),
            stop_bits=int(merged["gps.stop_bits"]),
            parity_even=bool(merged["gps.even"]),
            parity_odd=bool(merged["gps.odd"]),
            min_read=int(merged["gps.min_read"]),
            char_timeout_ms=int(merged["gps.char_timeout_ms"]),
            rs485_enabled=bool(merged["gps.rs485"]),
            rs485_rts_high_during_send=bool(merged["gps.rs485_high_during_send"]),
            rs485_rts_high_after_send=bool(merged["gps.rs485_high_after_send"]),
            tx_data=str(merged["gps.tx_data"]),
            rx_enabled=bool(merged["gps.rx"]),
        )
        log_file = str(merged["log_file"]).strip()

        config = cls(
            gps=GPSSettings(
                enabled=bool(merged["gps.enabled"]),
                serial=serial,
                min_satellites_in_view=int(merged["gps.min_satellites_in_view"]),
                reacquire_delay_s=float(merged["gps.reacquire_delay_s"]),
                console_logging=bool(merged["gps.console_logging"]),
                screen_logging=bool(merged["gps.screen_logging"]),
            ),
            distribution=DistributionSettings(
                pacing_s=float(merged["distribution.pacing_s"]),
                queue_size=int(merged["distribution.queue_size"]),
            ),
            traccar=TraccarSettings(
                enabled=bool(merged["traccar.enabled"]),
                client_id=str(merged["traccar.client_id"]),
                protocols=parse_protocols(merged["traccar.protocols"]),
                osmand_server_url=str(merged["traccar.osmand.server_url"]),
                osmand_port=int(merged["traccar.osmand.port"]),
                t55_server_ip=str(merged["traccar.t55.server_ip"]),
                t55_port=int(merged["traccar.t55.port"]),
                opengts_server_url=str(merged["traccar.opengts.server_url"]),
                opengts_port=int(merged["traccar.opengts.port"]),
                http_timeout_s=float(merged["traccar.http_timeout_s"]),
                t55_handshake_delay_s=float(merged["traccar.t55.handshake_delay_s"]),
                t55_idle_timeout_s=float(merged["traccar.t55.idle_timeout_s"]),
            ),
            retry=RetrySettings(
                max_attempts=int(merged["retry.max_attempts"]),
                base_delay_s=float(merged["retry.base_delay_s"]),
                max_delay_s=float(merged["retry.max_delay_s"]),
                backoff_factor=float(merged["retry.backoff_factor"]),
            ),
            display=DisplaySettings(
                lcd_enabled=bool(merged["display.lcd_enabled"]),
                oled_enabled=bool(merged["display.oled_enabled"]),
            ),
            log_level=str(merged["log_level"]),
            log_file=Path(log_file) if log_file else None,
        )

        if args is not None:
            config = config._apply_args_override(args)
        return config

    def _apply_args_override(self, args: Any) -> "RelayConfig":
        """Apply CLI argument overrides to config values."""
        serial = self.gps.serial
        port = getattr(args, "port", None)
        if port is not None:
            serial = replace(serial, port=port)
        baud = getattr(args, "baud", None)
        if baud is not None:
            serial = replace(serial, baud_rate=baud)

        config = replace(self, gps=replace(self.gps, serial=serial))

        log_level = getattr(args, "log_level", None)
        if log_level is not None:
            config = replace(config, log_level=log_level)
        log_file = getattr(args, "log_file", None)
        if log_file is not None:
            config = replace(config, log_file=Path(log_file))
        return config

    def to_dict(self) -> dict[str, Any]:
        """Export config values as dictionary."""
        return asdict(self)


def load(path: Optional[Path] = None, args: Any = None) -> RelayConfig:
    """Read ``path`` (missing file means defaults) and apply CLI overrides."""
    values = ConfigLoader.load(Path(path) if path else DEFAULT_CONFIG_PATH, DEFAULTS)
    return RelayConfig.from_mapping(values, args)


__all__ = [
    "DEFAULTS",
    "DEFAULT_CONFIG_PATH",
    "GPSSettings",
    "DistributionSettings",
    "TraccarSettings",
    "RetrySettings",
    "DisplaySettings",
    "RelayConfig",
    "load",
    "parse_protocols",
]
