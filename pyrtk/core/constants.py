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

"""GNSS Constants and System Parameters"""

# Physical Constants
CLIGHT = 299792458.0  # speed of light (m/s)
OMGE = 7.2921151467E-5  # earth angular velocity (rad/s)

# WGS84 ellipsoid
RE_WGS84 = 6378137.0  # earth semimajor axis (m)
FE_WGS84 = 1.0 / 298.257223563  # earth flattening

# Time
SEC_PER_DAY = 86400.0
MS_PER_DAY = 86400000
SEC_PER_WEEK = 604800.0
MJD_GPS_EPOCH = 44244  # 1980-01-06
MJD_BDS_EPOCH = 53736  # 2006-01-01

# GPS frequencies, keyed by RINEX band number
FREQ_L1 = 1.57542E9   # L1 frequency (Hz)
FREQ_L2 = 1.22760E9   # L2 frequency (Hz)
FREQ_L5 = 1.17645E9   # L5 frequency (Hz)

# GLONASS FDMA base frequencies and channel spacing
FREQ_G1 = 1.60200E9   # G1 base frequency (Hz)
FREQ_G2 = 1.24600E9   # G2 base frequency (Hz)
DFREQ_G1 = 0.56250E6  # G1 channel spacing (Hz)
DFREQ_G2 = 0.43750E6  # G2 channel spacing (Hz)
# GLONASS CDMA signals
FREQ_G3 = 1.202025E9
FREQ_G4 = 1.600995E9
FREQ_G6 = 1.24806E9

# Galileo frequencies
FREQ_E1 = 1.57542E9   # E1
FREQ_E5a = 1.17645E9  # E5a
FREQ_E5b = 1.20714E9  # E5b
FREQ_E5 = 1.191795E9  # E5 (E5a+E5b)
FREQ_E6 = 1.27875E9   # E6

# BeiDou frequencies
FREQ_B1C = 1.57542E9   # B1C (BDS-3)
FREQ_B1I = 1.561098E9  # B1I
FREQ_B2a = 1.17645E9   # B2a (BDS-3)
FREQ_B2b = 1.20714E9   # B2b
FREQ_B2 = 1.191795E9   # B2 (B2a+B2b)
FREQ_B3 = 1.26852E9    # B3

# IRNSS S band
FREQ_IS = 2.492028E9

# Observation noise used for the RTK equations (m)
CODE_SIGMA = 0.3
PHASE_SIGMA = 0.003

# Melbourne-Wubbena detector defaults
MW_DELTA_T_MAX = 61.0  # s
MW_MIN_CYCLES = 2.0    # wide-lane cycles
MW_OUTLIER_SIGMA = 4.0

# Ambiguity resolution defaults
RATIO_THRESHOLD = 10.0
LAMBDA_NCANDS = 2
LAMBDA_LOOPMAX = 10000

# Single point positioning
SPP_MAX_ITERATIONS = 10
SPP_CONVERGENCE = 0.01  # m

# Elevation handling (deg)
MIN_ELEVATION = 10.0
FULL_WEIGHT_ELEVATION = 30.0
