"""
Quantal dose-response modeling for toxicology.

Fits the two-parameter log-logistic model (LL.2) to binomial
dose/response/total data by maximum likelihood, estimates the median
lethal or effective dose (LD50/ED50), and quantifies its uncertainty with
a percentile bootstrap.

Validates against: R package drc (LL.2, type = "binomial").
"""

from pyld50.doseresponse._common import (
    DoseResponseData,
    LL2Params,
    LL2Fit,
    INFEASIBLE_PENALTY,
)
from pyld50.doseresponse._models import ll2, neg_log_likelihood
from pyld50.doseresponse._fit import fit_ll2
from pyld50.doseresponse._bootstrap import bootstrap_ed50, BootstrapCI
from pyld50.doseresponse._potency import ld50, LD50Result
from pyld50.doseresponse._io import read_dose_response_csv

__all__ = [
    "DoseResponseData",
    "LL2Params",
    "LL2Fit",
    "BootstrapCI",
    "LD50Result",
    "INFEASIBLE_PENALTY",
    "ll2",
    "neg_log_likelihood",
    "fit_ll2",
    "bootstrap_ed50",
    "ld50",
    "read_dose_response_csv",
]
