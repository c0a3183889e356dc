"""
Synthetic data generation for testing and demonstration.

Author: Relaxation Analysis Toolkit
"""

import numpy as np
import pandas as pd
import logging
from typing import Optional, Sequence
from numpy.typing import ArrayLike

from .samples import make_sample_table
from ..decay.stretched import stretched_exponential
from ..fitting.mechanisms import relaxation_rate
from ..fitting.tau_curve import TauCurve

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURES = (2.0, 2.2, 2.4, 2.6, 2.8, 3.0, 3.2, 3.4)


def decay_time_grid(tau: float, n_points: int = 60) -> np.ndarray:
    """
    Logarithmic time grid from 0 to 1000*tau.

    The last samples are far into the plateau, so the minimum moment of the
    decay equals mf to within machine precision.
    """
    return np.concatenate(([0.0], np.geomspace(tau / 100, 1000 * tau, n_points - 1)))


def generate_decay_data(
    temperature: float,
    tau: float,
    beta: float = 1.0,
    m0: float = 10.0,
    mf: float = 2.0,
    n_points: int = 60,
    noise: float = 0.0,
    time_offset: float = 0.0,
    temperature_jitter: float = 0.0
) -> pd.DataFrame:
    """
    Generate one isothermal stretched exponential decay.

    Parameters
    ----------
    temperature : float
        Set point [K]
    tau, beta : float
        Decay parameters
    m0, mf : float
        Initial and final moment
    n_points : int
        Number of samples
    noise : float
        Gaussian noise relative to (m0 - mf) (0.01 = 1%)
    time_offset : float
        Absolute time of the first sample [s]
    temperature_jitter : float
        Uniform scatter of the recorded temperature [K]

    Returns
    -------
    samples : DataFrame
        Sample table (Temperature, Time, Moment, Field)
    """
    time = decay_time_grid(tau, n_points)
    moment = stretched_exponential(time, tau, beta, m0, mf)
    if noise > 0:
        moment = moment + noise * (m0 - mf) * np.random.randn(len(time))

    recorded_temperature = np.full(len(time), float(temperature))
    if temperature_jitter > 0:
        recorded_temperature += np.random.uniform(-temperature_jitter, temperature_jitter, len(time))

    return make_sample_table(recorded_temperature, time + time_offset, moment)


def generate_relaxation_dataset(
    temperatures: Sequence[float] = DEFAULT_TEMPERATURES,
    Ueff: Optional[float] = 50.0,
    tau0: Optional[float] = 1e-6,
    qtm: Optional[float] = 1e-4,
    C: Optional[float] = None,
    n: Optional[float] = None,
    beta: float = 0.9,
    m0: float = 10.0,
    mf: float = 2.0,
    n_points: int = 60,
    noise: float = 0.002,
    temperature_jitter: float = 0.01
) -> pd.DataFrame:
    """
    Generate a temperature sweep of decays following given mechanisms.

    tau at each temperature follows 1/tau = exp(-Ueff/T)/tau0 + qtm + C*T^n
    (None excludes a parameter). Decays are concatenated in ascending
    temperature on one running time axis.

    Returns
    -------
    samples : DataFrame
        Sample table (Temperature, Time, Moment, Field)
    """
    logger.info("="*60)
    logger.info("Generating synthetic relaxation data")
    logger.info("="*60)
    logger.info(f"Ueff = {Ueff} K, tau0 = {tau0} s, qtm = {qtm} 1/s, C = {C}, n = {n}")

    temperatures = np.sort(np.asarray(temperatures, dtype=float))
    tau = 1.0 / relaxation_rate(temperatures, Ueff=Ueff, tau0=tau0, qtm=qtm, C=C, n=n)

    tables = []
    time_offset = 0.0
    for T, tau_T in zip(temperatures, tau):
        logger.debug(f"T = {T:.2f} K: tau = {tau_T:.4g} s")
        table = generate_decay_data(
            T, tau_T, beta=beta, m0=m0, mf=mf, n_points=n_points, noise=noise,
            time_offset=time_offset, temperature_jitter=temperature_jitter
        )
        tables.append(table)
        time_offset = float(table['Time'].max()) + 60.0

    samples = pd.concat(tables, ignore_index=True)
    logger.info(f"{len(temperatures)} temperatures, {len(samples)} samples")
    return samples


def generate_tau_curve(
    temperatures: ArrayLike,
    Ueff: Optional[float] = None,
    tau0: Optional[float] = None,
    qtm: Optional[float] = None,
    C: Optional[float] = None,
    n: Optional[float] = None,
    noise: float = 0.0
) -> TauCurve:
    """
    tau(T) from mechanism parameters, with optional relative log-normal noise.
    """
    temperatures = np.asarray(temperatures, dtype=float)
    tau = 1.0 / relaxation_rate(temperatures, Ueff=Ueff, tau0=tau0, qtm=qtm, C=C, n=n)
    if noise > 0:
        tau = tau * np.exp(noise * np.random.randn(len(tau)))
    return TauCurve(temperature=temperatures, tau=tau)


__all__ = [
    'DEFAULT_TEMPERATURES',
    'decay_time_grid',
    'generate_decay_data',
    'generate_relaxation_dataset',
    'generate_tau_curve',
]
