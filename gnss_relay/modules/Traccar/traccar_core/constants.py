"""Traccar protocol constants and defaults."""

PROTOCOL_OSMAND = "osmand"
PROTOCOL_T55 = "t55"
PROTOCOL_OPENGTS = "opengts"
SUPPORTED_PROTOCOLS = (PROTOCOL_OSMAND, PROTOCOL_T55, PROTOCOL_OPENGTS)

# Default listening ports of a stock Traccar server
DEFAULT_OSMAND_PORT = 5055
DEFAULT_T55_PORT = 5005
DEFAULT_OPENGTS_PORT = 5159

DEFAULT_HTTP_TIMEOUT = 10.0

# T55 session
T55_FRAME_TERMINATOR = "\r\n"
T55_ID_CHECKSUM = "0F"
DEFAULT_T55_HANDSHAKE_DELAY = 1.0
DEFAULT_T55_IDLE_TIMEOUT = 60.0
DEFAULT_T55_CONNECT_TIMEOUT = 10.0
T55_KEEPALIVE_PERIOD = 60
T55_READ_CHUNK = 1024

# OsmAnd timestamp: date and time joined by an encoded space
OSMAND_DATE_FORMAT = "%m-%d-%Y"
OSMAND_TIME_FORMAT = "%H:%M:%S"
