"""Nonparametric bootstrap confidence interval for ED50.

Rows of the dataset are resampled with replacement, the LL.2 model is refit
on each resample and the accepted ED50 estimates are summarised by a simple
percentile interval (not bias-corrected).

Resampled data are often degenerate (a single dose level, all-or-nothing
responses), so failed or implausible refits are expected: they are
discarded per trial and only counted.  A resample in which every row has
zero responses, or every row responds completely, carries no information
about ED50 and is discarded without a refit.  When too few trials survive, the
interval is reported as undefined (NaN bounds) rather than raised.

All random draws come from an explicit ``numpy.random.Generator``; no
global random state is touched.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from itertools import repeat

import numpy as np
from numpy.typing import NDArray

from pyld50.doseresponse._common import (
    DEFAULT_BOOT_ITERATIONS,
    MIN_BOOT_SUCCESS,
    MIN_OBS,
    DoseResponseData,
)
from pyld50.doseresponse._fit import fit_ll2

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapCI:
    """Percentile bootstrap interval for ED50."""

    lower: float
    upper: float
    estimates: NDArray[np.floating]  # accepted ED50 values, sorted ascending
    n_iterations: int
    n_success: int
    conf_level: float
    method: str  # 'percentile'

    @property
    def is_defined(self) -> bool:
        """False when too few trials succeeded to report an interval."""
        return not (math.isnan(self.lower) or math.isnan(self.upper))

    def summary(self) -> str:
        lines = [
            f"Bootstrap {self.conf_level:.0%} CI for ED50 ({self.method})",
            f"  Trials accepted: {self.n_success}/{self.n_iterations}",
        ]
        if self.is_defined:
            lines.append(f"  CI: [{self.lower:.6g}, {self.upper:.6g}]")
        else:
            lines.append("  CI: undefined (too few successful trials)")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Single trial
# ---------------------------------------------------------------------------

def _bootstrap_trial(data: DoseResponseData, indices: NDArray[np.integer]) -> float | None:
    """Refit one resample; ``None`` marks a discarded trial."""
    sample = data.take(indices)
    if np.all(sample.response == 0) or np.all(sample.response == sample.total):
        # flat likelihood, any ED50 the simplex stops at is arbitrary
        logger.debug("Bootstrap trial discarded: no response variation")
        return None

    try:
        fit = fit_ll2(sample)
    except Exception as exc:
        logger.debug("Bootstrap trial discarded: %s", exc)
        return None

    ed50 = fit.ed50
    if not (np.isfinite(ed50) and ed50 > 0):
        return None
    return float(ed50)


def _percentile_bounds(
    estimates: NDArray[np.floating],
    conf_level: float,
) -> tuple[float, float]:
    """``floor(a/2 * k)``-th and ``ceil((1 - a/2) * k)``-th sorted estimates."""
    k = estimates.size
    tail = (1.0 - conf_level) / 2.0
    lo = math.floor(tail * k)
    hi = min(math.ceil((1.0 - tail) * k), k - 1)
    return float(estimates[lo]), float(estimates[hi])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def bootstrap_ed50(
    data: DoseResponseData,
    iterations: int = DEFAULT_BOOT_ITERATIONS,
    *,
    rng: np.random.Generator | int | None = None,
    conf_level: float = 0.95,
    min_success: int = MIN_BOOT_SUCCESS,
    n_jobs: int = 1,
) -> BootstrapCI:
    """Percentile bootstrap confidence interval for the LL.2 ED50.

    Parameters
    ----------
    data : DoseResponseData
        Original observations (at least 3 rows).  Never modified.
    iterations : int
        Number of bootstrap resamples (default 1000).
    rng : Generator, int or None
        Source of randomness.  An integer seeds a new
        ``numpy.random.default_rng``; ``None`` uses fresh OS entropy.
    conf_level : float
        Confidence level (default 0.95, i.e. 2.5th and 97.5th percentiles).
    min_success : int
        Minimum number of accepted estimates needed to report an interval
        (default 50).  Below it, both bounds are NaN.
    n_jobs : int
        Worker processes for the refits (default 1, sequential).  All
        resampling indices are drawn before any trial runs, so a seeded
        result does not depend on *n_jobs*.

    Returns
    -------
    BootstrapCI
    """
    if not isinstance(data, DoseResponseData):
        raise TypeError(
            f"data must be a DoseResponseData instance, got {type(data).__name__}"
        )
    if data.n_obs < MIN_OBS:
        raise ValueError(
            f"Need at least {MIN_OBS} observations for bootstrap, got {data.n_obs}"
        )
    if iterations < 0:
        raise ValueError(f"iterations must be >= 0, got {iterations}")
    if not (0.0 < conf_level < 1.0):
        raise ValueError(f"conf_level must be in (0, 1), got {conf_level}")
    if min_success < 1:
        raise ValueError(f"min_success must be >= 1, got {min_success}")
    if n_jobs < 1:
        raise ValueError(f"n_jobs must be >= 1, got {n_jobs}")

    rng = np.random.default_rng(rng)
    n = data.n_obs
    indices = rng.integers(0, n, size=(iterations, n))

    if n_jobs == 1 or iterations == 0:
        outcomes = [_bootstrap_trial(data, idx) for idx in indices]
    else:
        chunksize = max(1, iterations // (4 * n_jobs))
        with ProcessPoolExecutor(max_workers=n_jobs) as executor:
            outcomes = list(
                executor.map(
                    _bootstrap_trial, repeat(data, iterations), indices,
                    chunksize=chunksize,
                )
            )

    estimates = np.sort(np.array([v for v in outcomes if v is not None], dtype=np.float64))
    n_success = int(estimates.size)
    logger.info("Bootstrap: %d of %d trials accepted", n_success, iterations)

    if n_success < min_success:
        logger.warning(
            "Only %d bootstrap trials succeeded (need %d); interval undefined",
            n_success, min_success,
        )
        lower = upper = float("nan")
    else:
        lower, upper = _percentile_bounds(estimates, conf_level)

    estimates.setflags(write=False)
    return BootstrapCI(
        lower=lower,
        upper=upper,
        estimates=estimates,
        n_iterations=iterations,
        n_success=n_success,
        conf_level=conf_level,
        method="percentile",
    )
