"""Nelder-Mead downhill simplex minimiser.

A small, dependency-light implementation of the classic simplex method
(Nelder & Mead, 1965) for unconstrained local minimisation of a scalar
function of a real vector.  No gradients are needed, which makes it a good
fit for likelihoods whose constraints are encoded as penalty values.

The objective is treated as a black box: large sentinel values used to
penalise infeasible regions are ordinary (bad) values, and NaN is ranked
below every finite value.

Validates against: scipy.optimize.minimize(method="Nelder-Mead")
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

import numpy as np
from numpy.typing import NDArray

from pyld50.optimize._common import SimplexResult

logger = logging.getLogger(__name__)

# Standard coefficients: reflection, expansion, contraction, shrink
_ALPHA = 1.0
_GAMMA = 2.0
_RHO = 0.5
_SIGMA = 0.5


def _evaluate(objective: Callable[[NDArray], float], x: NDArray) -> float:
    value = float(objective(x))
    # NaN would break the ordering; rank it as worst
    return np.inf if np.isnan(value) else value


def _initial_simplex(x0: NDArray, step: float) -> NDArray:
    """``n + 1`` vertices: *x0* plus one coordinate-wise offset per dimension."""
    n = x0.size
    simplex = np.tile(x0, (n + 1, 1))
    for i in range(n):
        simplex[i + 1, i] += step
    return simplex


def nelder_mead(
    objective: Callable[[NDArray[np.floating]], float],
    x0: Sequence[float] | NDArray[np.floating],
    *,
    step: float = 0.1,
    max_iter: int = 2000,
    tol: float = 1e-6,
) -> SimplexResult:
    """Minimise *objective* starting from *x0* with the Nelder-Mead method.

    Parameters
    ----------
    objective : callable
        Function mapping a 1-D float array of length ``n`` to a scalar.
    x0 : array-like
        Starting point (length ``n >= 1``).
    step : float
        Offset added to each coordinate of *x0* to build the initial
        simplex (default 0.1).
    max_iter : int
        Maximum number of iterations (default 2000).
    tol : float
        Stop when the spread ``f(worst) - f(best)`` across the simplex
        drops below *tol* (default 1e-6).

    Returns
    -------
    SimplexResult
        Best vertex, its objective value, the iteration count and whether
        the tolerance was met.  Hitting *max_iter* is not an error; the
        best point found so far is returned with ``converged=False``.

    Examples
    --------
    >>> res = nelder_mead(lambda p: (p[0] - 3) ** 2 + (p[1] + 4) ** 2, [0.0, 0.0])
    >>> [round(v, 2) for v in res.x]
    [3.0, -4.0]
    """
    x0 = np.asarray(x0, dtype=np.float64).ravel()
    if x0.size == 0:
        raise ValueError("x0 must have at least one coordinate")
    if step == 0:
        raise ValueError("step must be non-zero")
    if max_iter < 0:
        raise ValueError(f"max_iter must be >= 0, got {max_iter}")

    simplex = _initial_simplex(x0, step)
    fvals = np.array([_evaluate(objective, v) for v in simplex])

    converged = False
    n_iter = 0
    for n_iter in range(1, max_iter + 1):
        order = np.argsort(fvals, kind="stable")
        simplex = simplex[order]
        fvals = fvals[order]

        if fvals[-1] - fvals[0] < tol:
            converged = True
            n_iter -= 1
            break

        best_f, second_worst_f, worst_f = fvals[0], fvals[-2], fvals[-1]
        worst = simplex[-1]
        centroid = simplex[:-1].mean(axis=0)

        # Reflection
        xr = centroid + _ALPHA * (centroid - worst)
        fr = _evaluate(objective, xr)

        if fr < best_f:
            # Expansion
            xe = centroid + _GAMMA * (xr - centroid)
            fe = _evaluate(objective, xe)
            if fe < fr:
                simplex[-1], fvals[-1] = xe, fe
            else:
                simplex[-1], fvals[-1] = xr, fr
            continue

        if fr < second_worst_f:
            simplex[-1], fvals[-1] = xr, fr
            continue

        # Inside contraction
        xc = centroid + _RHO * (worst - centroid)
        fc = _evaluate(objective, xc)
        if fc < worst_f:
            simplex[-1], fvals[-1] = xc, fc
            continue

        # Shrink toward the best vertex
        best = simplex[0]
        for i in range(1, len(simplex)):
            simplex[i] = best + _SIGMA * (simplex[i] - best)
            fvals[i] = _evaluate(objective, simplex[i])
    else:
        order = np.argsort(fvals, kind="stable")
        simplex = simplex[order]
        fvals = fvals[order]
        # The final sort may reveal a collapsed simplex
        converged = bool(fvals[-1] - fvals[0] < tol)

    if not converged:
        logger.debug("Nelder-Mead stopped at max_iter=%d (spread %.3g)",
                     max_iter, fvals[-1] - fvals[0])

    return SimplexResult(
        x=simplex[0].copy(),
        fun=float(fvals[0]),
        n_iter=n_iter,
        converged=converged,
    )
