"""Command-line entry point for LD50 analysis."""

import json
import logging
from pathlib import Path

import typer

from pyld50.doseresponse import fit_ll2, ld50, read_dose_response_csv

app = typer.Typer(help="pyld50 dose-response utilities")
logger = logging.getLogger(__name__)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Show debug-level log messages."
    ),
) -> None:
    """LD50/ED50 estimation from quantal dose-response data."""
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="%(levelname)s: %(message)s",
        )


@app.command()
def analyze(
    csv_path: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="CSV file with 'dose', 'response' and 'total' columns.",
    ),
    iterations: int = typer.Option(
        1000, "-n", "--iterations", min=0, help="Number of bootstrap resamples."
    ),
    seed: int | None = typer.Option(
        None, "--seed", help="Seed for the bootstrap random generator."
    ),
    conf_level: float = typer.Option(
        0.95, "--conf-level", help="Confidence level of the interval."
    ),
    jobs: int = typer.Option(
        1, "-j", "--jobs", min=1, help="Worker processes for bootstrap refits."
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print the result as JSON."
    ),
) -> None:
    """Fit LL.2 to CSV_PATH and report LD50 with a bootstrap interval."""
    resolved = csv_path.expanduser().resolve()
    logger.info("Reading dose-response data from %s", resolved)
    try:
        data = read_dose_response_csv(resolved)
        fit = fit_ll2(data)
        result = ld50(
            fit,
            iterations=iterations,
            conf_level=conf_level,
            rng=seed,
            n_jobs=jobs,
        )
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        payload = {"success": True, **result.to_dict()}
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(fit.summary())
    typer.echo("")
    typer.echo(result.summary())


if __name__ == "__main__":
    app()
