"""Maximum-likelihood fitting of the LL.2 model to quantal data.

Minimises the binomial negative log-likelihood with the Nelder-Mead simplex
(:func:`pyld50.optimize.nelder_mead`).  The ``ed50 > 0`` constraint is
expressed as a penalty value in the objective rather than a hard bound, so
the optimiser stays generic.

Includes a data-driven starting ED50 so the user never has to guess.

Validates against: R drc::drm(response / total ~ dose, weights = total,
fct = LL.2(), type = "binomial")
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from pyld50.doseresponse._common import (
    FALLBACK_ED50,
    INFEASIBLE_PENALTY,
    MIN_OBS,
    DoseResponseData,
    LL2Fit,
    LL2Params,
)
from pyld50.doseresponse._models import neg_log_likelihood
from pyld50.optimize import nelder_mead

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Self-starting parameter estimation
# ---------------------------------------------------------------------------

def _initial_params(data: DoseResponseData) -> dict[str, float]:
    """Starting values for the simplex.

    Algorithm
    ---------
    1.  ED50: dose of the row whose observed proportion is closest to 0.5
        (first row on ties).
    2.  If that dose is not positive, the median of the positive doses.
    3.  If still not positive, ``FALLBACK_ED50``.
    4.  Slope: 1.0.
    """
    distance = np.abs(data.proportion - 0.5)
    ed50 = float(data.dose[int(np.argmin(distance))]) if data.n_obs else 0.0

    if not ed50 > 0:
        positive = data.dose[data.dose > 0]
        ed50 = float(np.median(positive)) if positive.size else 0.0

    if not ed50 > 0:
        ed50 = FALLBACK_ED50

    return {"slope": 1.0, "ed50": ed50}


def _penalized_objective(data: DoseResponseData):
    """Negative log-likelihood, or ``INFEASIBLE_PENALTY`` where ``ed50 <= 0``."""

    def objective(p: NDArray) -> float:
        if p[1] <= 0:
            return INFEASIBLE_PENALTY
        return neg_log_likelihood(p, data)

    return objective


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def fit_ll2(
    data: DoseResponseData,
    *,
    start: dict[str, float] | None = None,
    max_iter: int = 2000,
    tol: float = 1e-6,
) -> LL2Fit:
    """Fit the two-parameter log-logistic model by maximum likelihood.

    Parameters
    ----------
    data : DoseResponseData
        Quantal observations (at least 3 rows).
    start : dict or None
        Starting values ``{"slope": ..., "ed50": ...}``.  If ``None``,
        uses self-starting estimates derived from the data.
    max_iter : int
        Maximum simplex iterations (default 2000).
    tol : float
        Convergence tolerance on the spread of objective values across
        the simplex (default 1e-6).

    Returns
    -------
    LL2Fit
        Poor fits on degenerate data are returned as they are; check
        ``converged`` and the parameter values.

    Examples
    --------
    >>> data = DoseResponseData(
    ...     dose=[1, 2, 4, 8, 16], response=[0, 3, 10, 17, 20], total=[20] * 5
    ... )
    >>> fit = fit_ll2(data)
    >>> 2 < fit.ed50 < 8
    True

    Validates against: R drc::drm(fct = LL.2(), type = "binomial")
    """
    if not isinstance(data, DoseResponseData):
        raise TypeError(
            f"data must be a DoseResponseData instance, got {type(data).__name__}"
        )
    if data.n_obs < MIN_OBS:
        raise ValueError(
            f"Need at least {MIN_OBS} observations for model LL.2, got {data.n_obs}"
        )

    if start is None:
        start = _initial_params(data)
    else:
        missing = {"slope", "ed50"} - set(start)
        if missing:
            raise ValueError(f"start is missing values for {sorted(missing)}")
        if not start["ed50"] > 0:
            raise ValueError(f"start ed50 must be positive, got {start['ed50']}")
    x0 = np.array([start["slope"], start["ed50"]], dtype=np.float64)

    result = nelder_mead(
        _penalized_objective(data),
        x0,
        max_iter=max_iter,
        tol=tol,
    )

    params = LL2Params.from_array(result.x)
    logger.debug(
        "LL.2 fit: slope=%.4g ed50=%.4g nll=%.4g converged=%s (%d iterations)",
        params.slope, params.ed50, result.fun, result.converged, result.n_iter,
    )

    return LL2Fit(
        params=params,
        nll=result.fun,
        converged=result.converged,
        n_iter=result.n_iter,
        data=data,
    )
