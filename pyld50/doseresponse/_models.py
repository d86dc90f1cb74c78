"""Two-parameter log-logistic model and its binomial likelihood.

The curve is parameterised as in R ``drc::LL.2()``:

.. math::
    p(x) = \\frac{1}{1 + \\exp\\bigl(b \\cdot (\\ln x - \\ln e)\\bigr)}

with ``b = slope`` and ``e = ed50``.  With this convention a **positive**
slope gives a curve that *decreases* with dose, and a negative slope gives
the usual rising mortality curve.

Non-positive doses and non-positive ``ed50`` evaluate to a response of 0,
which keeps the likelihood finite instead of raising.

Validates against: R drc::LL.2(), drm(..., type = "binomial")
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import expit

from pyld50.doseresponse._common import PROB_CLIP, DoseResponseData, LL2Params


def ll2(
    dose: ArrayLike,
    slope: float,
    ed50: float,
) -> NDArray[np.floating]:
    """2-parameter log-logistic (LL.2) response proportion.

    Parameters
    ----------
    dose : array
        Dose values.  Zero or negative doses give 0.
    slope : float
        Slope ``b``.  Positive for a decreasing curve, negative for an
        increasing one.
    ed50 : float
        Dose giving a proportion of exactly 0.5.  Non-positive values
        give 0 everywhere.

    Returns
    -------
    NDArray
        Predicted proportions in ``[0, 1]``, same shape as *dose*.

    Validates against: R drc::LL.2()
    """
    dose = np.asarray(dose, dtype=np.float64)
    if ed50 <= 0:
        return np.zeros_like(dose)

    positive = dose > 0
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        log_dose = np.where(positive, np.log(dose), 0.0)
        # expit(-z) == 1 / (1 + exp(z)), saturating at 0 and 1
        p = expit(-slope * (log_dose - np.log(ed50)))
    return np.where(positive, p, 0.0)


def neg_log_likelihood(
    params: LL2Params | Sequence[float] | NDArray[np.floating],
    data: DoseResponseData,
) -> float:
    """Binomial negative log-likelihood of *data* under LL.2 *params*.

    .. math::
        -\\sum_i \\bigl[r_i \\ln p_i + (n_i - r_i) \\ln(1 - p_i)\\bigr]

    summed over rows with ``dose > 0`` only; zero-dose rows carry no
    information on the log-dose scale.  Predicted ``p_i`` is clipped to
    ``[1e-9, 1 - 1e-9]`` so the logarithms stay finite.

    Parameters
    ----------
    params : LL2Params or (slope, ed50)
    data : DoseResponseData

    Returns
    -------
    float
        Non-negative objective value (binomial coefficients omitted).
    """
    if isinstance(params, LL2Params):
        slope, ed50 = params.slope, params.ed50
    else:
        slope, ed50 = (float(v) for v in params)

    mask = data.dose > 0
    p = ll2(data.dose[mask], slope, ed50)
    p = np.clip(p, PROB_CLIP, 1.0 - PROB_CLIP)
    r = data.response[mask]
    n = data.total[mask]
    return float(-np.sum(r * np.log(p) + (n - r) * np.log(1.0 - p)))
