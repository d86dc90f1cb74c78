"""Shared data and result types for quantal dose-response modeling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

INFEASIBLE_PENALTY = 1e9  # objective value returned for ed50 <= 0
PROB_CLIP = 1e-9  # predicted probabilities are clipped to [PROB_CLIP, 1 - PROB_CLIP]
FALLBACK_ED50 = 0.1  # starting ed50 when the data suggest none
MIN_OBS = 3
MIN_BOOT_SUCCESS = 50
DEFAULT_BOOT_ITERATIONS = 1000


def _as_count_array(values: ArrayLike, name: str) -> NDArray[np.int64]:
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be a 1-D array")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} must contain finite values")
    if np.any(arr != np.round(arr)):
        raise ValueError(f"{name} must contain whole numbers")
    return arr.astype(np.int64)


# ---------------------------------------------------------------------------
# Input data
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class DoseResponseData:
    """Quantal (binomial) dose-response observations.

    Row ``i`` records that ``response[i]`` out of ``total[i]`` subjects
    responded at ``dose[i]``.  Arrays are converted on construction and
    made read-only; resampling builds a new instance via :meth:`take`.
    """

    dose: NDArray[np.floating]
    response: NDArray[np.integer]
    total: NDArray[np.integer]

    def __post_init__(self) -> None:
        dose = np.array(self.dose, dtype=np.float64)
        if dose.ndim != 1:
            raise ValueError("dose must be a 1-D array")
        response = _as_count_array(self.response, "response")
        total = _as_count_array(self.total, "total")

        if not (dose.shape == response.shape == total.shape):
            raise ValueError(
                "dose, response and total must have the same length, got "
                f"{dose.shape[0]}, {response.shape[0]} and {total.shape[0]}"
            )
        if not np.all(np.isfinite(dose)):
            raise ValueError("dose values must be finite")
        if np.any(dose < 0):
            raise ValueError("dose values must be non-negative")
        if np.any(total <= 0):
            raise ValueError("total values must be positive")
        if np.any(response < 0) or np.any(response > total):
            raise ValueError("response counts must satisfy 0 <= response <= total")

        for arr in (dose, response, total):
            arr.setflags(write=False)
        object.__setattr__(self, "dose", dose)
        object.__setattr__(self, "response", response)
        object.__setattr__(self, "total", total)

    @property
    def n_obs(self) -> int:
        return int(self.dose.shape[0])

    @property
    def proportion(self) -> NDArray[np.floating]:
        """Observed response proportion per row."""
        return self.response / self.total

    def take(self, indices: Sequence[int] | NDArray[np.integer]) -> DoseResponseData:
        """New dataset made of the rows at *indices* (repeats allowed)."""
        idx = np.asarray(indices, dtype=np.intp)
        return DoseResponseData(
            dose=self.dose[idx],
            response=self.response[idx],
            total=self.total[idx],
        )

    def __len__(self) -> int:
        return self.n_obs


# ---------------------------------------------------------------------------
# Model parameters and fit result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LL2Params:
    """Parameters of the two-parameter log-logistic curve.

    ``p(x) = 1 / (1 + exp(slope * (ln x - ln ed50)))``
    """

    slope: float
    ed50: float

    def predict(self, dose: ArrayLike) -> NDArray[np.floating]:
        """Predicted response proportion at given dose levels."""
        from pyld50.doseresponse._models import ll2

        return ll2(dose, self.slope, self.ed50)

    def to_array(self) -> NDArray[np.floating]:
        """Parameter vector ``[slope, ed50]`` (optimiser order)."""
        return np.array([self.slope, self.ed50], dtype=np.float64)

    @staticmethod
    def from_array(params: ArrayLike) -> LL2Params:
        slope, ed50 = np.asarray(params, dtype=np.float64)
        return LL2Params(slope=float(slope), ed50=float(ed50))


@dataclass(frozen=True)
class LL2Fit:
    """Result of a maximum-likelihood LL.2 fit."""

    params: LL2Params
    nll: float  # binomial negative log-likelihood at the optimum
    converged: bool
    n_iter: int
    data: DoseResponseData

    @property
    def slope(self) -> float:
        return self.params.slope

    @property
    def ed50(self) -> float:
        return self.params.ed50

    @property
    def n_obs(self) -> int:
        return self.data.n_obs

    def predict(self, dose: ArrayLike | None = None) -> NDArray[np.floating]:
        """Predict response proportion.  If *dose* is ``None``, use the fitted dose."""
        if dose is None:
            dose = self.data.dose
        return self.params.predict(dose)

    def curve(self, n_points: int = 100) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        """Fitted curve on a log-spaced grid from the smallest positive dose
        to the largest dose.

        Returns
        -------
        (dose, proportion) : tuple of arrays, each of length *n_points*
        """
        if n_points < 2:
            raise ValueError(f"n_points must be >= 2, got {n_points}")
        positive = self.data.dose[self.data.dose > 0]
        if positive.size == 0:
            raise ValueError("Cannot build a log-dose curve without positive doses")
        grid = np.geomspace(positive.min(), positive.max(), n_points)
        return grid, self.params.predict(grid)

    def summary(self) -> str:
        """Human-readable summary, similar to R drc::summary()."""
        lines = [
            "Dose-response model: LL.2 (binomial)",
            "",
            "Parameter estimates:",
            f"  {'slope':>8s} = {self.slope:>12.6f}",
            f"  {'ed50':>8s} = {self.ed50:>12.6f}",
            "",
            f"  -logLik = {self.nll:.6f}",
            f"  n       = {self.n_obs}",
            f"  Converged: {self.converged} ({self.n_iter} iterations)",
        ]
        return "\n".join(lines)
