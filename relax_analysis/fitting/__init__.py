"""
Relaxation mechanism fitting and shared least-squares utilities.

- mechanisms.py: Orbach / QTM / Raman rate model and tagged parameters
- arrhenius.py: fit of the mechanism model to tau(T)
- tau_curve.py: tau(T) container handed over from the decay fits
- covariance.py: covariance and confidence intervals from the Jacobian
- bounds.py: parameter bounds and at-bound detection
- diagnostics.py: fit diagnostics, quality and console reports
- config.py: configuration constants with documentation

Usage Example
-------------
```python
from relax_analysis.fitting import MechanismParameters, fit_arrhenius, seeded, fixed

params = MechanismParameters().with_params(Ueff=seeded(80), tau0=seeded(1e-9),
                                           qtm=fixed(1e-3))
result = fit_arrhenius(curve, params)
print(result.to_frame())
```
"""

from .covariance import CovarianceResult, compute_covariance_matrix, compute_confidence_interval
from .bounds import PARAMETER_BOUNDS, generate_bounds, find_params_at_bounds
from .diagnostics import (
    FitDiagnostics,
    compute_fit_metrics,
    assess_quality,
    log_decay_results,
    log_arrhenius_results,
)
from .mechanisms import (
    PARAMETER_NAMES,
    ParameterMode,
    MechanismParameter,
    MechanismParameters,
    MechanismModel,
    seeded,
    fixed,
    excluded,
    relaxation_rate,
)
from .tau_curve import TauCurve
from .arrhenius import ArrheniusFitResult, fit_arrhenius

__all__ = [
    'CovarianceResult',
    'compute_covariance_matrix',
    'compute_confidence_interval',
    'PARAMETER_BOUNDS',
    'generate_bounds',
    'find_params_at_bounds',
    'FitDiagnostics',
    'compute_fit_metrics',
    'assess_quality',
    'log_decay_results',
    'log_arrhenius_results',
    'PARAMETER_NAMES',
    'ParameterMode',
    'MechanismParameter',
    'MechanismParameters',
    'MechanismModel',
    'seeded',
    'fixed',
    'excluded',
    'relaxation_rate',
    'TauCurve',
    'ArrheniusFitResult',
    'fit_arrhenius',
]
