"""NMEA decoding and fix assembly."""

from .nmea_types import AcquisitionSession, Fix, SatelliteObservation
from .fix_assembler import FixAssembler, decode

__all__ = ["AcquisitionSession", "Fix", "SatelliteObservation", "FixAssembler", "decode"]
