"""GPS fix data types."""

from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
from typing import List, Optional

from ..constants import KMH_PER_KNOT, MAX_SATELLITE_SLOTS, RMC_VALID


@dataclass(frozen=True, slots=True)
class SatelliteObservation:
    """One satellite entry from a GSV sentence."""

    prn: int = 0
    snr: int = 0
    azimuth: int = 0


def _empty_slots() -> List[SatelliteObservation]:
    return [SatelliteObservation() for _ in range(MAX_SATELLITE_SLOTS)]


@dataclass(slots=True)
class Fix:
    """GPS fix assembled from one RMC, one GGA and the GSV sentences of a cycle."""

    timestamp: Optional[dt.datetime] = None
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None  # naive, UTC
    validity: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    speed_knots: float = 0.0
    course_deg: float = 0.0
    variation_deg: float = 0.0
    fix_quality: int = 0
    satellites_in_use: int = 0
    satellites_in_view: int = 0
    hdop: float = 0.0
    altitude_m: float = 0.0
    raw_sentence: str = ""
    satellites: List[SatelliteObservation] = field(default_factory=_empty_slots)

    @property
    def fix_valid(self) -> bool:
        return self.validity == RMC_VALID

    @property
    def speed_kmh(self) -> float:
        return self.speed_knots * KMH_PER_KNOT

    def copy(self) -> "Fix":
        """Copy for handing to one consumer; the satellite list is not shared."""
        return Fix(
            timestamp=self.timestamp,
            date=self.date,
            time=self.time,
            validity=self.validity,
            latitude=self.latitude,
            longitude=self.longitude,
            speed_knots=self.speed_knots,
            course_deg=self.course_deg,
            variation_deg=self.variation_deg,
            fix_quality=self.fix_quality,
            satellites_in_use=self.satellites_in_use,
            satellites_in_view=self.satellites_in_view,
            hdop=self.hdop,
            altitude_m=self.altitude_m,
            raw_sentence=self.raw_sentence,
            satellites=list(self.satellites),
        )


@dataclass(slots=True)
class AcquisitionSession:
    """Per-cycle state: the fix being assembled and one latch per sentence family.

    A latch is set by the first accepted sentence of its family; the cycle is
    complete once all three are set.
    """

    fix: Fix = field(default_factory=Fix)
    position_seen: bool = False
    fix_seen: bool = False
    satellites_seen: bool = False

    @property
    def complete(self) -> bool:
        return self.position_seen and self.fix_seen and self.satellites_seen

    def reset(self) -> None:
        self.fix = Fix()
        self.position_seen = False
        self.fix_seen = False
        self.satellites_seen = False
