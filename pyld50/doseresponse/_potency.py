"""LD50/ED50 estimation with a bootstrap confidence interval.

Combines the maximum-likelihood point estimate from :func:`fit_ll2` with the
percentile interval from :func:`bootstrap_ed50`.  The bootstrap standard
error is the standard deviation of the accepted resample estimates.

Validates against: R drc::ED(model, 50)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from pyld50.doseresponse._bootstrap import bootstrap_ed50
from pyld50.doseresponse._common import DEFAULT_BOOT_ITERATIONS, LL2Fit


@dataclass(frozen=True)
class LD50Result:
    """LD50 (or ED50) with bootstrap confidence interval."""

    estimate: float
    se: float
    ci_lower: float
    ci_upper: float
    conf_level: float
    method: str
    n_boot: int  # accepted bootstrap trials
    slope: float

    def summary(self) -> str:
        level = f"{self.conf_level:.0%}"
        lines = [
            "LD50 estimate",
            "=" * 40,
            f"LD50      : {self.estimate:.6g}",
            f"Slope (b) : {self.slope:.6g}",
            f"Boot SE   : {self.se:.6g}",
            f"{level} CI    : [{self.ci_lower:.6g}, {self.ci_upper:.6g}]",
            f"Accepted  : {self.n_boot} bootstrap fits",
            f"Method    : {self.method}",
        ]
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready payload; NaN values become ``None``."""

        def _num(value: float) -> float | None:
            return None if math.isnan(value) else float(value)

        return {
            "ld50_estimate": _num(self.estimate),
            "standard_error": _num(self.se),
            "confidence_interval_lower": _num(self.ci_lower),
            "confidence_interval_upper": _num(self.ci_upper),
            "model_details": {
                "coefficients": {
                    "slope_b": _num(self.slope),
                    "ld50_e": _num(self.estimate),
                },
                "method": self.method,
            },
        }


def ld50(
    fit_result: LL2Fit,
    *,
    iterations: int = DEFAULT_BOOT_ITERATIONS,
    conf_level: float = 0.95,
    rng: np.random.Generator | int | None = None,
    n_jobs: int = 1,
) -> LD50Result:
    """Extract LD50 with a bootstrap confidence interval from a fitted model.

    Parameters
    ----------
    fit_result : LL2Fit
        A fitted LL.2 model; its data are resampled.
    iterations : int
        Number of bootstrap resamples (default 1000).
    conf_level : float
        Confidence level (default 0.95).
    rng : Generator, int or None
        Random source for resampling (see :func:`bootstrap_ed50`).
    n_jobs : int
        Worker processes for the bootstrap refits.

    Returns
    -------
    LD50Result
        ``ci_lower``, ``ci_upper`` and ``se`` are NaN when the interval is
        undefined.
    """
    if not (0.0 < conf_level < 1.0):
        raise ValueError(f"conf_level must be in (0, 1), got {conf_level}")

    ci = bootstrap_ed50(
        fit_result.data,
        iterations,
        rng=rng,
        conf_level=conf_level,
        n_jobs=n_jobs,
    )

    if ci.is_defined and ci.n_success > 1:
        se = float(np.std(ci.estimates, ddof=1))
    else:
        se = float("nan")

    method = (
        "Log-Logistic (LL.2) fit via Nelder-Mead; "
        f"{conf_level:.0%} CI via Bootstrap"
    )

    return LD50Result(
        estimate=fit_result.ed50,
        se=se,
        ci_lower=ci.lower,
        ci_upper=ci.upper,
        conf_level=conf_level,
        method=method,
        n_boot=ci.n_success,
        slope=fit_result.slope,
    )
