"""Reading quantal dose-response tables."""

from __future__ import annotations

import logging
from os import PathLike
from typing import IO

import pandas as pd

from pyld50.doseresponse._common import DoseResponseData

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("dose", "response", "total")


def read_dose_response_csv(source: str | PathLike | IO[str]) -> DoseResponseData:
    """Load a comma-separated ``dose,response,total`` table.

    Header names are whitespace-trimmed and matched case-sensitively.
    Extra columns are ignored.  Every value in the three required columns
    must parse as a number; responses and totals must be whole numbers.

    Parameters
    ----------
    source : path or file-like
        Anything accepted by :func:`pandas.read_csv`.

    Returns
    -------
    DoseResponseData

    Raises
    ------
    ValueError
        Empty input, missing or duplicated columns, non-numeric fields or
        counts that violate ``0 <= response <= total``.
    """
    try:
        # index_col=False keeps rows with a trailing delimiter aligned
        frame = pd.read_csv(source, dtype=str, keep_default_na=False, index_col=False)
    except pd.errors.EmptyDataError as exc:
        raise ValueError("Input CSV is empty") from exc

    frame.columns = [str(c).strip() for c in frame.columns]
    duplicated = frame.columns[frame.columns.duplicated()]
    if len(duplicated):
        raise ValueError(
            f"Duplicate column names in input CSV: {', '.join(dict.fromkeys(duplicated))}"
        )
    if not all(col in frame.columns for col in REQUIRED_COLUMNS):
        raise ValueError(
            f"Input CSV must contain columns: {', '.join(REQUIRED_COLUMNS)}"
        )

    columns = {}
    for col in REQUIRED_COLUMNS:
        raw = frame[col].str.strip()
        values = pd.to_numeric(raw, errors="coerce")
        bad = values.isna()
        if bad.any():
            row = int(bad.to_numpy().nonzero()[0][0])
            raise ValueError(
                f"Non-numeric value {raw.iloc[row]!r} in column '{col}' "
                f"(data row {row + 1})"
            )
        columns[col] = values.to_numpy(dtype=float)

    logger.debug("Read %d dose-response rows", len(frame))
    return DoseResponseData(
        dose=columns["dose"],
        response=columns["response"],
        total=columns["total"],
    )
