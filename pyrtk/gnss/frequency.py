# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Carrier frequency and wavelength provider

Bands are RINEX 3 band numbers (1, 2, 5, 6, 7, 8, 9). Unsupported
system/band pairs give 0.0 rather than raising, callers must skip them.
"""

from typing import Union

from ..core.constants import (
    CLIGHT, DFREQ_G1, DFREQ_G2,
    FREQ_B1C, FREQ_B1I, FREQ_B2, FREQ_B2a, FREQ_B2b, FREQ_B3,
    FREQ_E1, FREQ_E5, FREQ_E5a, FREQ_E5b, FREQ_E6,
    FREQ_G1, FREQ_G2, FREQ_G3, FREQ_G4, FREQ_G6,
    FREQ_IS, FREQ_L1, FREQ_L2, FREQ_L5,
    CODE_SIGMA, PHASE_SIGMA,
)
from ..core.satellite import SatelliteSystem, SatID


_FREQUENCIES = {
    SatelliteSystem.GPS: {1: FREQ_L1, 2: FREQ_L2, 5: FREQ_L5},
    SatelliteSystem.GALILEO: {1: FREQ_E1, 5: FREQ_E5a, 6: FREQ_E6, 7: FREQ_E5b, 8: FREQ_E5},
    SatelliteSystem.BDS: {1: FREQ_B1C, 2: FREQ_B1I, 5: FREQ_B2a, 6: FREQ_B3,
                          7: FREQ_B2b, 8: FREQ_B2},
    SatelliteSystem.QZSS: {1: FREQ_L1, 2: FREQ_L2, 5: FREQ_L5, 6: FREQ_E6},
    SatelliteSystem.SBAS: {1: FREQ_L1, 5: FREQ_L5},
    SatelliteSystem.IRNSS: {5: FREQ_L5, 9: FREQ_IS},
    # FDMA bands 1 and 2 depend on the frequency slot, see get_frequency
    SatelliteSystem.GLONASS: {3: FREQ_G3, 4: FREQ_G4, 6: FREQ_G6},
}


def _system_of(sat: Union[SatID, SatelliteSystem]) -> SatelliteSystem:
    return sat.system if isinstance(sat, SatID) else sat


def get_frequency(sat: Union[SatID, SatelliteSystem], band: int,
                  glonass_slot: int = 0) -> float:
    """
    Carrier frequency of a signal

    Parameters
    ----------
    sat : SatID or SatelliteSystem
        Satellite or constellation
    band : int
        RINEX band number
    glonass_slot : int
        GLONASS FDMA frequency channel (-7..6), ignored for other systems

    Returns
    -------
    float
        Frequency in Hz, 0.0 if the band is not defined for the system
    """
    system = _system_of(sat)
    if system == SatelliteSystem.GLONASS:
        if band == 1:
            return FREQ_G1 + glonass_slot * DFREQ_G1
        if band == 2:
            return FREQ_G2 + glonass_slot * DFREQ_G2
    return _FREQUENCIES.get(system, {}).get(band, 0.0)


def get_wavelength(sat: Union[SatID, SatelliteSystem], band: int,
                   glonass_slot: int = 0) -> float:
    """Carrier wavelength in meters, 0.0 when the signal is unknown"""
    freq = get_frequency(sat, band, glonass_slot)
    if freq == 0.0:
        return 0.0
    return CLIGHT / freq


def wavelength_of_mw(system: SatelliteSystem, band_a: int, band_b: int) -> float:
    """
    Wide-lane wavelength of the Melbourne-Wubbena combination ``MW<a><b>``

    Signed: negative when band ``a`` has the lower frequency, which is the
    case for ``MW21G``. Returns 0.0 when either band is unknown.
    """
    fa = get_frequency(system, band_a)
    fb = get_frequency(system, band_b)
    if fa == 0.0 or fb == 0.0 or fa == fb:
        return 0.0
    return CLIGHT / (fa - fb)


def variance_of_mw(system: SatelliteSystem, band_a: int, band_b: int,
                   code_sigma: float = CODE_SIGMA,
                   phase_sigma: float = PHASE_SIGMA) -> float:
    """Variance (m^2) of the MW combination from uncorrelated code/phase noise"""
    fa = get_frequency(system, band_a)
    fb = get_frequency(system, band_b)
    if fa == 0.0 or fb == 0.0 or fa == fb:
        return 0.0
    ssq = fa * fa + fb * fb
    return (ssq / (fa - fb) ** 2 * phase_sigma ** 2
            + ssq / (fa + fb) ** 2 * code_sigma ** 2)
