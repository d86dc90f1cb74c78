"""
PyLD50: quantal dose-response analysis for Python.

Fits the two-parameter log-logistic model to binomial dose-response data,
estimates the median lethal/effective dose (LD50/ED50) and derives a
percentile bootstrap confidence interval.  The Nelder-Mead minimiser used
for fitting is available on its own in :mod:`pyld50.optimize`.

Usage:
    from pyld50 import doseresponse, optimize
"""

__version__ = "0.1.0"

from pyld50 import optimize
from pyld50 import doseresponse

__all__ = [
    "__version__",
    "optimize",
    "doseresponse",
]
