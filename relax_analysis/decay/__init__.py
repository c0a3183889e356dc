"""
Isothermal decay analysis.

- grouping.py: temperature rounding and per-group time re-anchoring
- stretched.py: stretched exponential fit of one decay and the
  temperature-ascending sweep
- analysis.py: temperature range selection and the full decay analysis
- config.py: rounding granularity, bounds, seeds and solver tolerances

Usage Example
-------------
```python
from relax_analysis.decay import analyze_decays

analysis = analyze_decays(samples, temp_range=(2.0, 3.0))
print(analysis.fits[['Temperature', 'tau', 'tauCi']])
curve = analysis.tau_curve()
```
"""

from .config import TEMPERATURE_ROUNDING, DECAY_INITIAL_GUESS
from .grouping import (
    TemperatureGroup,
    round_temperature,
    assign_temperature_groups,
    normalize_group_times,
    group_by_temperature,
)
from .stretched import (
    DecayFitResult,
    stretched_exponential,
    fit_decay_group,
    fit_decays,
    decay_results_to_frame,
)
from .analysis import (
    DecayAnalysis,
    analyze_decays,
    parse_temp_range,
    select_temperature_range,
)

__all__ = [
    'TEMPERATURE_ROUNDING',
    'DECAY_INITIAL_GUESS',
    'TemperatureGroup',
    'round_temperature',
    'assign_temperature_groups',
    'normalize_group_times',
    'group_by_temperature',
    'DecayFitResult',
    'stretched_exponential',
    'fit_decay_group',
    'fit_decays',
    'decay_results_to_frame',
    'DecayAnalysis',
    'analyze_decays',
    'parse_temp_range',
    'select_temperature_range',
]
