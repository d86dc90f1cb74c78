"""Shared result type for derivative-free minimisation."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class SimplexResult:
    """Result of a Nelder-Mead minimisation."""

    x: NDArray[np.floating]  # best vertex
    fun: float  # objective value at x
    n_iter: int
    converged: bool  # False when max_iter was reached first

    def summary(self) -> str:
        coords = ", ".join(f"{v:.6g}" for v in self.x)
        lines = [
            "Nelder-Mead simplex",
            f"  x         = [{coords}]",
            f"  f(x)      = {self.fun:.6g}",
            f"  n_iter    = {self.n_iter}",
            f"  Converged: {self.converged}",
        ]
        return "\n".join(lines)
