"""GPS/NMEA constants and configuration defaults."""

# Speed conversion factors
KMH_PER_KNOT = 1.852

# Satellite observation slots held per fix (one GSV sentence carries four)
MAX_SATELLITE_SLOTS = 4
DEFAULT_MIN_SATELLITES_IN_VIEW = 4

# RMC status character for a valid fix
RMC_VALID = "A"

# GGA fix quality indicator descriptions
FIX_QUALITY_DESCRIPTIONS = {
    0: "Invalid",
    1: "GPS fix",
    2: "DGPS fix",
    3: "PPS fix",
    4: "RTK fixed",
    5: "RTK float",
    6: "Estimated",
    7: "Manual",
    8: "Simulation",
}

# Default serial configuration
DEFAULT_PORT = "/dev/ttyUSB0"
DEFAULT_BAUD_RATE = 4800
DEFAULT_DATA_BITS = 8
DEFAULT_STOP_BITS = 1
DEFAULT_MIN_READ = 1
DEFAULT_READ_TIMEOUT = 1.0
DEFAULT_REACQUIRE_DELAY = 1.0

# Distribution
DEFAULT_DELIVERY_PACING = 0.1
DEFAULT_CONSUMER_QUEUE_SIZE = 4
