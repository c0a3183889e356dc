"""
Visualization functions for DC relaxation data.
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from typing import Optional

from ..fitting.tau_curve import TauCurve

PLOT_GRID_ALPHA = 0.3


def plot_moment(
    parsed: pd.DataFrame,
    title: str = "Moment decays",
    figsize: tuple = (8, 6),
    log_time: bool = True
) -> plt.Figure:
    """
    Plot measured moment vs. normalised time, one color per temperature.

    Parameters
    ----------
    parsed : DataFrame
        Parsed sample table (TemperatureRounded, Time, Moment and optionally
        MomentCalc with the fitted trace)
    title : str, optional
        Plot title
    figsize : tuple, optional
        Figure size (default: (8, 6))
    log_time : bool, optional
        Logarithmic time axis (default: True; t = 0 is not shown)

    Returns
    -------
    fig : matplotlib.figure.Figure
    """
    fig, ax = plt.subplots(figsize=figsize)

    temperatures = np.sort(parsed['TemperatureRounded'].unique())
    colors = plt.cm.coolwarm(np.linspace(0, 1, max(len(temperatures), 1)))

    for T, color in zip(temperatures, colors):
        group = parsed[parsed['TemperatureRounded'] == T].sort_values('Time')
        ax.plot(group['Time'], group['Moment'], 'o', markersize=3, color=color,
                label=f"{T:.2f} K")
        if 'MomentCalc' in group.columns and group['MomentCalc'].notna().any():
            ax.plot(group['Time'], group['MomentCalc'], '-', linewidth=1.5, color=color)

    if log_time:
        ax.set_xscale('log')
    ax.set_xlabel("Time [s]")
    ax.set_ylabel("Moment [emu/mol]")
    ax.set_title(title)
    if len(temperatures) > 0:
        ax.legend(loc='best', fontsize='small', ncol=2)
    ax.grid(True, alpha=PLOT_GRID_ALPHA, which='both')

    plt.tight_layout()
    return fig


def plot_arrhenius(
    curve: TauCurve,
    result: Optional[object] = None,
    title: Optional[str] = None,
    figsize: tuple = (8, 6)
) -> plt.Figure:
    """
    Arrhenius plot: ln(tau) vs. 1/T with optional mechanism fit.

    Parameters
    ----------
    curve : TauCurve
        Relaxation times from the decay fits
    result : ArrheniusFitResult, optional
        Mechanism fit; draws the total model and the individual mechanisms
    title : str, optional
        Custom plot title
    figsize : tuple, optional
        Figure size (default: (8, 6))

    Returns
    -------
    fig : matplotlib.figure.Figure
    """
    fig, ax = plt.subplots(figsize=figsize)

    if curve.tau_ci is not None:
        # Error bars on ln(tau) from the tau CI half-width
        with np.errstate(divide='ignore', invalid='ignore'):
            yerr = np.abs(curve.tau_ci / curve.tau)
        ax.errorbar(curve.inverse_temperature, curve.log_tau, yerr=yerr,
                    fmt='o', markersize=5, capsize=3, label='Data')
    else:
        ax.plot(curve.inverse_temperature, curve.log_tau, 'o', markersize=5, label='Data')

    if result is not None and len(curve) > 0:
        T_min, T_max = curve.temp_range
        T_dense = np.linspace(T_min * 0.9, T_max * 1.1, 200)
        model = result.model
        ax.plot(1 / T_dense, np.log(result.predict_tau(T_dense)), '-',
                linewidth=2, color='k', label='Fit')

        if len(result.mechanisms) > 1:
            for mech, rate in model.mechanism_rates(T_dense, result.values).items():
                with np.errstate(divide='ignore'):
                    ax.plot(1 / T_dense, -np.log(rate), '--', linewidth=1, label=mech.capitalize())

        if title is None:
            title = f"Arrhenius fit ({' + '.join(result.mechanisms)})"

    ax.set_xlabel("1/T [1/K]")
    ax.set_ylabel("ln(tau / s)")
    ax.set_title(title or "Arrhenius plot")
    ax.legend(loc='best')
    ax.grid(True, alpha=PLOT_GRID_ALPHA)

    if len(curve) > 0:
        low, high = curve.log_tau.min(), curve.log_tau.max()
        margin = max(0.1 * (high - low), 0.5)
        ax.set_ylim(low - margin, high + margin)

    plt.tight_layout()
    return fig


__all__ = [
    'PLOT_GRID_ALPHA',
    'plot_moment',
    'plot_arrhenius',
]
