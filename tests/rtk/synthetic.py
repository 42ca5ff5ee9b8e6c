"""Noise-controlled rover/base observation generator for the RTK tests"""

import numpy as np

from pyrtk.core.config import DEFAULT_BANDS
from pyrtk.core.data_structures import ReceiverEpoch, SatTypeValueMap
from pyrtk.core.satellite import SatelliteSystem, SatID
from pyrtk.core.time import CommonTime
from pyrtk.core.type_id import SAT_X, SAT_Y, SAT_Z, obs_type
from pyrtk.gnss.frequency import get_wavelength
from pyrtk.gnss.geometry import enu_rotation, llh2ecef
from pyrtk.rtk.rtk_processor import RTKProcessor

GPS = SatelliteSystem.GPS
BDS = SatelliteSystem.BDS

BASE_LLH = np.array([np.radians(35.71), np.radians(139.81), 45.0])
BASE_XYZ = llh2ecef(BASE_LLH)
BASELINE_ENU = np.array([120.0, -80.0, 2.5])
ROVER_XYZ = BASE_XYZ + enu_rotation(BASE_LLH).T @ BASELINE_ENU
ROVER_APRIORI_OFFSET = np.array([0.8, -0.5, 1.2])
SAT_RANGE = 2.2e7
WEEK = 2138

# (azimuth, elevation) in degrees, seen from the base
SKY = {
    SatID(GPS, 1): (30.0, 75.0),
    SatID(GPS, 5): (95.0, 48.0),
    SatID(GPS, 12): (170.0, 35.0),
    SatID(GPS, 17): (250.0, 52.0),
    SatID(GPS, 24): (310.0, 25.0),
    SatID(GPS, 29): (45.0, 18.0),
    SatID(BDS, 6): (200.0, 62.0),
    SatID(BDS, 14): (20.0, 40.0),
    SatID(BDS, 27): (120.0, 28.0),
    SatID(BDS, 33): (290.0, 33.0),
}

CLOCKS = {'rover': 35.0, 'base': -12.0}


def satellite_position(azimuth: float, elevation: float) -> np.ndarray:
    az, el = np.radians(azimuth), np.radians(elevation)
    enu = SAT_RANGE * np.array([np.cos(el) * np.sin(az), np.cos(el) * np.cos(az), np.sin(el)])
    return BASE_XYZ + enu_rotation(BASE_LLH).T @ enu


class SyntheticScenario:
    """
    Static rover and base observing a fixed sky

    Code is noise free; phase carries Gaussian noise of ``phase_noise``
    metres. Integer ambiguities are fixed per receiver, satellite and band
    until a slip is injected.
    """

    def __init__(self, systems=(GPS,), phase_noise: float = 1e-4, seed: int = 42):
        self.rng = np.random.default_rng(seed)
        self.phase_noise = phase_noise
        self.sats = {sat: satellite_position(*sky) for sat, sky in SKY.items()
                     if sat.system in systems}
        self.ambiguities = {}
        for sat in self.sats:
            for band in DEFAULT_BANDS[sat.system]:
                self.ambiguities[('rover', sat, band)] = 1000 + 7 * sat.prn + band
                self.ambiguities[('base', sat, band)] = 500 - 3 * sat.prn + 2 * band

    def add_slip(self, receiver: str, sat: SatID, band: int, cycles: int):
        self.ambiguities[(receiver, sat, band)] += cycles

    def sd_ambiguity(self, sat: SatID, band: int) -> int:
        return self.ambiguities[('rover', sat, band)] - self.ambiguities[('base', sat, band)]

    def observations(self, receiver: str, position: np.ndarray, sats=None) -> SatTypeValueMap:
        stv = SatTypeValueMap()
        for sat in sorted(sats if sats is not None else self.sats):
            sv = self.sats[sat]
            rho = float(np.linalg.norm(sv - position))
            values = {SAT_X: sv[0], SAT_Y: sv[1], SAT_Z: sv[2]}
            for band in DEFAULT_BANDS[sat.system]:
                wavelength = get_wavelength(sat.system, band)
                ambiguity = self.ambiguities[(receiver, sat, band)]
                values[obs_type('C', band, sat.system)] = rho + CLOCKS[receiver]
                values[obs_type('L', band, sat.system)] = (
                    rho + CLOCKS[receiver] + wavelength * ambiguity
                    + self.rng.normal(0.0, self.phase_noise))
            stv[sat] = values
        return stv

    def rover_epoch(self, sow: float, sats=None) -> ReceiverEpoch:
        return ReceiverEpoch(
            time=CommonTime.from_gps_week_seconds(WEEK, sow),
            observations=self.observations('rover', ROVER_XYZ, sats),
            position=ROVER_XYZ + ROVER_APRIORI_OFFSET,
            receiver='ROVER',
        )

    def base_epoch(self, sow: float, sats=None) -> ReceiverEpoch:
        return ReceiverEpoch(
            time=CommonTime.from_gps_week_seconds(WEEK, sow),
            observations=self.observations('base', BASE_XYZ, sats),
            position=BASE_XYZ.copy(),
            receiver='BASE',
        )


def to_record(epoch: ReceiverEpoch) -> dict:
    """Plain record as read from JSON"""
    week, sow = epoch.time.to_gps_week_seconds()
    return {
        'time': {'week': week, 'sow': sow},
        'position': list(epoch.position),
        'receiver': epoch.receiver,
        'observations': {str(sat): {t.name: v for t, v in tv.items()}
                         for sat, tv in epoch.observations.items()},
    }


def single_differences(scenario: SyntheticScenario, config, sow: float = 0.0):
    """Rover epoch and its weighted rover-base differences, ready for LsqRTK"""
    processor = RTKProcessor(config)
    rover, base = scenario.rover_epoch(sow), scenario.base_epoch(sow)
    stv = processor.prepare_receiver(rover, processor.rover_detector)
    processor.prepare_receiver(base, processor.base_detector)
    processor.differencer.process(stv, base.observations)
    processor.weights.process(stv)
    return rover, stv
