"""
Visualization module for DC relaxation analysis.
"""

from .plots import plot_moment, plot_arrhenius

__all__ = [
    'plot_moment',
    'plot_arrhenius',
]
