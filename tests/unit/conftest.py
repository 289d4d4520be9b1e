"""Unit test fixtures for isolated, fast test execution.

Provides:
- A ready-made Fix for consumer tests
- An in-memory transport that replays a fixed list of lines
"""

from __future__ import annotations

import datetime as dt

import pytest

from gnss_relay.modules.GPS.gps_core import Fix, SatelliteObservation
from tests.nmea_samples import RMC_MUNICH
from tests.scripted_transport import ScriptedTransport


@pytest.fixture
def scripted_transport_factory():
    """Factory for ScriptedTransport instances."""
    return ScriptedTransport


@pytest.fixture
def sample_fix() -> Fix:
    """A complete fix as the assembler would produce it for the Munich sample."""
    return Fix(
        timestamp=dt.datetime(2024, 3, 5, 7, 8, 9, tzinfo=dt.timezone.utc),
        date=dt.date(1994, 3, 23),
        time=dt.time(12, 35, 19),
        validity="A",
        latitude=48.1173,
        longitude=11.516667,
        speed_knots=22.4,
        course_deg=84.4,
        variation_deg=-3.1,
        fix_quality=1,
        satellites_in_use=8,
        satellites_in_view=8,
        hdop=0.9,
        altitude_m=545.4,
        raw_sentence=RMC_MUNICH,
        satellites=[
            SatelliteObservation(prn=1, snr=46, azimuth=83),
            SatelliteObservation(prn=2, snr=41, azimuth=308),
            SatelliteObservation(prn=12, snr=39, azimuth=344),
            SatelliteObservation(prn=14, snr=45, azimuth=228),
        ],
    )
