"""Assemble GPS fixes from decoded NMEA sentences.

Sentence grammar (checksums, field splitting) is handled by pynmea2. This
module applies the per-cycle rules on top of it: within one cycle the first
accepted RMC, the first accepted GGA and the first complete satellite view
are latched into the fix, and later sentences of the same family are
ignored until the cycle completes and the session is reset.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

import pynmea2

from gnss_relay.core.errors import ConfigurationError, DecodeError
from gnss_relay.core.logging_utils import get_module_logger

from ..constants import DEFAULT_MIN_SATELLITES_IN_VIEW, MAX_SATELLITE_SLOTS
from .nmea_types import AcquisitionSession, Fix, SatelliteObservation

logger = get_module_logger("FixAssembler")


def _as_float(value: Any) -> float:
    """pynmea2 hands back None for empty fields and the raw string when a
    typed conversion fails; both become 0.0."""
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _as_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0


def _signed_variation(magnitude: Any, direction: Any) -> float:
    variation = _as_float(magnitude)
    if str(direction or "").upper() == "W":
        variation = -variation
    return variation


def decode(line: str) -> pynmea2.NMEASentence:
    """Decode one line, raising DecodeError for anything pynmea2 rejects."""
    try:
        return pynmea2.parse(line)
    except pynmea2.ParseError as exc:
        raise DecodeError(str(exc), line) from exc
    except (ValueError, AttributeError, TypeError) as exc:
        raise DecodeError(f"malformed sentence: {exc}", line) from exc


class FixAssembler:
    """Feeds sentences into an AcquisitionSession and hands out completed fixes.

    Args:
        min_satellites_in_view: Number of GSV entries with a nonzero SNR
            needed in one sentence before the satellite view counts as seen.
            The completing entry must land at slot ``min - 1``.
    """

    def __init__(self, min_satellites_in_view: int = DEFAULT_MIN_SATELLITES_IN_VIEW):
        if not 1 <= min_satellites_in_view <= MAX_SATELLITE_SLOTS:
            raise ConfigurationError(
                f"min_satellites_in_view must be between 1 and {MAX_SATELLITE_SLOTS}, "
                f"got {min_satellites_in_view}"
            )
        self.min_satellites_in_view = min_satellites_in_view
        self.decode_errors = 0

    @staticmethod
    def cycle_complete(session: AcquisitionSession) -> bool:
        return session.complete

    def process(self, session: AcquisitionSession, line: str) -> Optional[Fix]:
        """Apply one line to ``session``.

        Returns a copy of the assembled fix when this line completed the
        cycle (the session is reset for the next one), otherwise None.
        """
        try:
            sentence = decode(line)
        except DecodeError as exc:
            self.decode_errors += 1
            logger.debug("Dropping undecodable sentence %r: %s", line, exc)
            return None

        try:
            if isinstance(sentence, pynmea2.types.RMC):
                self._apply_rmc(session, sentence, line)
            elif isinstance(sentence, pynmea2.types.GGA):
                self._apply_gga(session, sentence)
            elif isinstance(sentence, pynmea2.types.GSV):
                self._apply_gsv(session, sentence)
            else:
                return None
        except (ValueError, AttributeError, TypeError) as exc:
            # Field-level garbage that passed the checksum (e.g. "48.07" as a latitude)
            self.decode_errors += 1
            logger.debug("Dropping malformed %s sentence %r: %s", sentence.sentence_type, line, exc)
            return None

        if not session.complete:
            return None

        completed = session.fix.copy()
        session.reset()
        return completed

    # ------------------------------------------------------------------
    # Sentence families
    # ------------------------------------------------------------------

    def _apply_rmc(self, session: AcquisitionSession, msg: Any, line: str) -> None:
        latitude = msg.latitude
        longitude = msg.longitude
        if latitude == 0 or longitude == 0 or session.position_seen:
            return

        fix = session.fix
        fix.timestamp = dt.datetime.now(dt.timezone.utc)
        fix.date = msg.datestamp if isinstance(msg.datestamp, dt.date) else None
        # RMC time is always UTC; newer pynmea2 attaches tzinfo, older does not
        fix.time = msg.timestamp.replace(tzinfo=None) if isinstance(msg.timestamp, dt.time) else None
        fix.validity = (msg.status or "").upper()
        fix.latitude = latitude
        fix.longitude = longitude
        fix.speed_knots = _as_float(msg.spd_over_grnd)
        fix.course_deg = _as_float(msg.true_course)
        fix.variation_deg = _signed_variation(msg.mag_variation, msg.mag_var_dir)
        fix.raw_sentence = line.strip()
        session.position_seen = True

    def _apply_gga(self, session: AcquisitionSession, msg: Any) -> None:
        if msg.latitude == 0 or msg.longitude == 0 or session.fix_seen:
            return

        fix = session.fix
        fix.fix_quality = _as_int(msg.gps_qual)
        fix.satellites_in_use = _as_int(msg.num_sats)
        fix.hdop = _as_float(msg.horizontal_dil)
        fix.altitude_m = _as_float(msg.altitude)
        session.fix_seen = True

    def _apply_gsv(self, session: AcquisitionSession, msg: Any) -> None:
        completing_slot = self.min_satellites_in_view - 1
        fix = session.fix

        for index in range(MAX_SATELLITE_SLOTS):
            if session.satellites_seen:
                return
            number = index + 1
            snr = _as_int(getattr(msg, f"snr_{number}", None))
            if snr <= 0:
                continue
            fix.satellites[index] = SatelliteObservation(
                prn=_as_int(getattr(msg, f"sv_prn_num_{number}", None)),
                snr=snr,
                azimuth=_as_int(getattr(msg, f"azimuth_{number}", None)),
            )
            if index >= completing_slot:
                session.satellites_seen = True
                fix.satellites_in_view = _as_int(msg.num_sv_in_view)


__all__ = ["FixAssembler", "decode"]
