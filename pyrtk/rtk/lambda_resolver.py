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
Integer ambiguity resolution by LAMBDA/MLAMBDA
==============================================

Decorrelation by LAMBDA reduction, search by MLAMBDA.

References:
    [1] P.J.G.Teunissen, The least-square ambiguity decorrelation adjustment:
        a method for fast GPS ambiguity estimation, J.Geodesy, Vol.70, 65-82,
        1995
    [2] X.-W.Chang, X.Yang, T.Zhou, MLAMBDA: A modified LAMBDA method for
        integer least-squares estimation, J.Geodesy, Vol.79, 552-565, 2005
"""

import logging
from typing import Optional, Tuple

import numpy as np
from numpy.linalg import inv
from scipy.stats import norm

from ..core.constants import LAMBDA_LOOPMAX, LAMBDA_NCANDS, RATIO_THRESHOLD
from ..core.exceptions import AmbiguityResolutionError

logger = logging.getLogger(__name__)


def _round(x: float) -> float:
    # halves round up, as ROUND() in RTKLIB
    return float(np.floor(x + 0.5))


def LD(Q: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    LD factorization (Q = L' * diag(D) * L)

    Parameters
    ----------
    Q : np.ndarray
        Covariance matrix (n x n), must be positive definite

    Returns
    -------
    L : np.ndarray
        Unit lower triangular matrix
    d : np.ndarray
        Diagonal values

    Raises
    ------
    AmbiguityResolutionError
        If Q is not positive definite
    """
    n = len(Q)
    L = np.zeros((n, n))
    d = np.zeros(n)
    A = np.array(Q, dtype=float)

    for i in range(n - 1, -1, -1):
        d[i] = A[i, i]
        if d[i] <= 0.0:
            raise AmbiguityResolutionError(
                f"LD factorization failed: d[{i}]={d[i]:.3e}, covariance not positive definite")
        L[i, :i + 1] = A[i, :i + 1] / np.sqrt(d[i])
        for j in range(i):
            A[j, :j + 1] -= L[i, :j + 1] * L[i, j]
        L[i, :i + 1] /= L[i, i]

    return L, d


def gauss(L: np.ndarray, Z: np.ndarray, i: int, j: int):
    """Integer Gauss transformation of column j by column i, in place"""
    mu = _round(L[i, j])
    if mu != 0.0:
        L[i:, j] -= mu * L[i:, i]
        Z[:, j] -= mu * Z[:, i]


def permute(L: np.ndarray, d: np.ndarray, j: int, delta: float, Z: np.ndarray):
    """Swap ambiguities j and j+1, updating L, d and Z in place"""
    n = len(d)
    eta = d[j] / delta
    lam = d[j + 1] * L[j + 1, j] / delta
    d[j] = eta * d[j + 1]
    d[j + 1] = delta
    L[j:j + 2, :j] = np.array([[-L[j + 1, j], 1.0], [eta, lam]]) @ L[j:j + 2, :j]
    L[j + 1, j] = lam
    if j + 2 < n:
        L[j + 2:, j], L[j + 2:, j + 1] = L[j + 2:, j + 1].copy(), L[j + 2:, j].copy()
    Z[:, j], Z[:, j + 1] = Z[:, j + 1].copy(), Z[:, j].copy()


def reduction(L: np.ndarray, d: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    LAMBDA reduction (z = Z' * a, Qz = Z' * Q * Z = L' * diag(D) * L)

    Returns
    -------
    L, d : np.ndarray
        Factors of the decorrelated covariance
    Z : np.ndarray
        Unimodular integer transformation
    """
    n = len(d)
    Z = np.eye(n)
    j = k = n - 2

    while j >= 0:
        if j <= k:
            for i in range(j + 1, n):
                gauss(L, Z, i, j)
        delta = d[j] + L[j + 1, j] ** 2 * d[j + 1]
        # compared with a margin for numerical error
        if delta + 1e-6 < d[j + 1]:
            permute(L, d, j, delta, Z)
            k = j
            j = n - 2
        else:
            j -= 1

    return L, d, Z


def search(L: np.ndarray, d: np.ndarray, zs: np.ndarray, m: int = LAMBDA_NCANDS,
           max_loops: int = LAMBDA_LOOPMAX) -> Tuple[np.ndarray, np.ndarray]:
    """
    MLAMBDA search

    Parameters
    ----------
    L, d : np.ndarray
        Decorrelated covariance factors
    zs : np.ndarray
        Decorrelated float ambiguities
    m : int
        Number of candidates
    max_loops : int
        Bound on visited search nodes

    Returns
    -------
    zn : np.ndarray
        Integer candidates (n x m), best first
    s : np.ndarray
        Sums of squared residuals (m,)

    Raises
    ------
    AmbiguityResolutionError
        If the search does not finish within ``max_loops``
    """
    n = len(d)
    nn = 0
    imax = 0
    chi2 = 1e18
    S = np.zeros((n, n))
    dist = np.zeros(n)
    zb = np.zeros(n)
    z = np.zeros(n)
    step = np.zeros(n)
    zn = np.zeros((n, m))
    s = np.zeros(m)

    k = n - 1
    zb[k] = zs[k]
    z[k] = _round(zb[k])
    y = zb[k] - z[k]
    step[k] = 1.0 if y > 0 else -1.0

    for _ in range(max_loops):
        newdist = dist[k] + y * y / d[k]
        if newdist < chi2:
            if k != 0:
                k -= 1
                dist[k] = newdist
                S[k, :k + 1] = S[k + 1, :k + 1] + (z[k + 1] - zb[k + 1]) * L[k + 1, :k + 1]
                zb[k] = zs[k] + S[k, k]
                z[k] = _round(zb[k])
                y = zb[k] - z[k]
                step[k] = 1.0 if y > 0 else -1.0
            else:
                if nn < m:
                    if nn == 0 or newdist > s[imax]:
                        imax = nn
                    zn[:, nn] = z
                    s[nn] = newdist
                    nn += 1
                else:
                    if newdist < s[imax]:
                        zn[:, imax] = z
                        s[imax] = newdist
                        imax = int(np.argmax(s))
                    chi2 = s[imax]
                z[0] += step[0]
                y = zb[0] - z[0]
                step[0] = -step[0] - (1.0 if step[0] > 0 else -1.0)
        else:
            if k == n - 1:
                break
            k += 1
            z[k] += step[k]
            y = zb[k] - z[k]
            step[k] = -step[k] - (1.0 if step[k] > 0 else -1.0)
    else:
        raise AmbiguityResolutionError(f"Search loop count overflow ({max_loops})")

    order = np.argsort(s, kind='stable')
    return zn[:, order], s[order]


def mlambda(a: np.ndarray, Q: np.ndarray, m: int = LAMBDA_NCANDS,
            max_loops: int = LAMBDA_LOOPMAX) -> Tuple[np.ndarray, np.ndarray]:
    """
    Integer least-squares estimation

    Parameters
    ----------
    a : np.ndarray
        Float ambiguities (n,)
    Q : np.ndarray
        Covariance of the float ambiguities (n x n)
    m : int
        Number of candidates

    Returns
    -------
    F : np.ndarray
        Integer candidates (n x m), best first
    s : np.ndarray
        Sums of squared residuals (m,)
    """
    L, d = LD(Q)
    L, d, Z = reduction(L, d)
    z = Z.T @ a
    E, s = search(L, d, z, m, max_loops)
    F = np.round(inv(Z.T)) @ E
    return np.rint(F).astype(np.int64), s


def bootstrap_success_rate(Q: np.ndarray) -> float:
    """Bootstrapped success rate of the decorrelated problem (Teunissen, 1998)"""
    L, d = LD(Q)
    _, d, _ = reduction(L, d)
    return float(np.prod(2.0 * norm.cdf(0.5 / np.sqrt(d)) - 1.0))


class LambdaResolver:
    """
    Resolve float ambiguities to integers and keep the ratio test statistics

    Parameters
    ----------
    ncands : int
        Number of candidates kept by the search (at least 2)
    max_loops : int
        Bound on visited search nodes per call

    Examples
    --------
    >>> resolver = LambdaResolver()
    >>> resolver.resolve(np.array([10.02, 9.97]), np.eye(2) * 0.01)
    array([10, 10])
    >>> resolver.is_fixed()
    True
    """

    def __init__(self, ncands: int = LAMBDA_NCANDS, max_loops: int = LAMBDA_LOOPMAX):
        if ncands < 2:
            raise ValueError("ncands must be at least 2 for the ratio test")
        self.ncands = ncands
        self.max_loops = max_loops
        self.candidates: Optional[np.ndarray] = None
        self.residuals: Optional[np.ndarray] = None
        self.squared_ratio = 0.0
        self.success_rate = 0.0

    def resolve(self, float_amb: np.ndarray, cov: np.ndarray) -> np.ndarray:
        """
        Best integer vector for ``float_amb`` given its covariance

        Raises
        ------
        AmbiguityResolutionError
            On empty or inconsistent input, a covariance that is not positive
            definite or a search overflow
        """
        self.candidates = None
        self.residuals = None
        self.squared_ratio = 0.0
        self.success_rate = 0.0

        a = np.asarray(float_amb, dtype=float).ravel()
        Q = np.asarray(cov, dtype=float)
        n = a.size
        if n == 0:
            raise AmbiguityResolutionError("No ambiguities to resolve")
        if Q.shape != (n, n):
            raise AmbiguityResolutionError(
                f"Covariance shape {Q.shape} does not match {n} ambiguities")
        if not (np.all(np.isfinite(a)) and np.all(np.isfinite(Q))):
            raise AmbiguityResolutionError("Non-finite float ambiguities or covariance")
        Q = 0.5 * (Q + Q.T)

        F, s = mlambda(a, Q, self.ncands, self.max_loops)
        self.candidates = F
        self.residuals = s
        if s[0] > 0.0:
            self.squared_ratio = float(s[1] / s[0])
        else:
            self.squared_ratio = float('inf')
        self.success_rate = bootstrap_success_rate(Q)

        logger.debug(f"LAMBDA: n={n}, s={s[0]:.3f}/{s[1]:.3f}, "
                     f"ratio={self.squared_ratio:.2f}, Ps={self.success_rate:.4f}")
        return F[:, 0]

    def is_fixed(self, threshold: float = RATIO_THRESHOLD) -> bool:
        return self.candidates is not None and self.squared_ratio > threshold
