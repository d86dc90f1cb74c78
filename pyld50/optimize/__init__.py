"""
Derivative-free minimisation.

A generic Nelder-Mead simplex minimiser used by the dose-response fitter.
It only needs a callable ``f(x) -> float``; it has no knowledge of the
statistical model it is minimising.
"""

from pyld50.optimize._common import SimplexResult
from pyld50.optimize._nelder_mead import nelder_mead

__all__ = [
    "SimplexResult",
    "nelder_mead",
]
