"""Tests for the percentile bootstrap of ED50."""

import itertools
from types import SimpleNamespace

import numpy as np
import pytest

from pyld50.doseresponse import BootstrapCI, DoseResponseData, bootstrap_ed50, fit_ll2
from pyld50.doseresponse import _bootstrap


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mortality_data():
    return DoseResponseData(
        dose=[1, 2, 4, 8, 16],
        response=[0, 3, 10, 17, 20],
        total=[20, 20, 20, 20, 20],
    )


@pytest.fixture
def synthetic_data():
    """Seven dose levels around ed50=5 (slope=2), counts out of 40 with
    small deviations from the expected values in both directions."""
    return DoseResponseData(
        dose=5.0 * 2.0 ** np.arange(-3, 4),
        response=[39, 37, 33, 19, 9, 2, 1],
        total=[40] * 7,
    )


def _fake_fit(values):
    """Replacement for fit_ll2 returning the given ED50 values in turn."""
    it = iter(values)

    def fake(data):
        return SimpleNamespace(ed50=next(it))

    return fake


# ---------------------------------------------------------------------------
# Interval on real fits
# ---------------------------------------------------------------------------

class TestBootstrapInterval:

    def test_brackets_point_estimate(self, mortality_data):
        fit = fit_ll2(mortality_data)
        ci = bootstrap_ed50(mortality_data, 1000, rng=42)
        assert ci.is_defined
        assert ci.lower < fit.ed50 < ci.upper
        assert ci.n_iterations == 1000
        assert ci.n_success >= 50

    def test_covers_true_ed50_across_seeds(self, synthetic_data):
        """The known ED50 lies inside the interval in >= 90% of seeded runs."""
        fit = fit_ll2(synthetic_data)
        covered = 0
        seeds = range(10)
        for seed in seeds:
            ci = bootstrap_ed50(synthetic_data, 200, rng=seed)
            assert ci.lower < fit.ed50 < ci.upper
            covered += ci.lower < 5.0 < ci.upper
        assert covered >= 0.9 * len(seeds)

    def test_seed_reproducible(self, mortality_data):
        a = bootstrap_ed50(mortality_data, 100, rng=7)
        b = bootstrap_ed50(mortality_data, 100, rng=7)
        assert (a.lower, a.upper) == (b.lower, b.upper)
        np.testing.assert_array_equal(a.estimates, b.estimates)

    def test_generator_same_as_seed(self, mortality_data):
        a = bootstrap_ed50(mortality_data, 100, rng=np.random.default_rng(11))
        b = bootstrap_ed50(mortality_data, 100, rng=11)
        np.testing.assert_array_equal(a.estimates, b.estimates)

    def test_estimates_sorted_and_positive(self, mortality_data):
        ci = bootstrap_ed50(mortality_data, 100, rng=3)
        assert np.all(np.diff(ci.estimates) >= 0)
        assert np.all(ci.estimates > 0)
        assert np.all(np.isfinite(ci.estimates))
        assert ci.estimates.size == ci.n_success

    def test_original_not_modified(self, mortality_data):
        dose = mortality_data.dose.copy()
        response = mortality_data.response.copy()
        bootstrap_ed50(mortality_data, 50, rng=0)
        np.testing.assert_array_equal(mortality_data.dose, dose)
        np.testing.assert_array_equal(mortality_data.response, response)

    def test_parallel_matches_sequential(self, mortality_data):
        seq = bootstrap_ed50(mortality_data, 60, rng=5)
        par = bootstrap_ed50(mortality_data, 60, rng=5, n_jobs=2)
        np.testing.assert_array_equal(seq.estimates, par.estimates)
        assert (seq.lower, seq.upper) == (par.lower, par.upper)

    def test_narrower_at_lower_level(self, mortality_data):
        wide = bootstrap_ed50(mortality_data, 300, rng=1, conf_level=0.95)
        narrow = bootstrap_ed50(mortality_data, 300, rng=1, conf_level=0.5)
        assert wide.lower <= narrow.lower <= narrow.upper <= wide.upper

    def test_summary(self, mortality_data):
        s = bootstrap_ed50(mortality_data, 60, rng=0).summary()
        assert "95% CI" in s
        assert "percentile" in s


# ---------------------------------------------------------------------------
# Undefined interval
# ---------------------------------------------------------------------------

class TestUndefinedInterval:

    @pytest.mark.parametrize("response", [[0, 0, 0], [20, 20, 20]])
    def test_extreme_three_rows(self, response):
        data = DoseResponseData(dose=[1, 2, 4], response=response, total=[20, 20, 20])
        ci = bootstrap_ed50(data, 1000, rng=0)
        assert not ci.is_defined
        assert np.isnan(ci.lower) and np.isnan(ci.upper)
        assert ci.n_success == 0
        assert ci.n_iterations == 1000

    def test_flat_resamples_skip_refit(self, monkeypatch):
        """Resamples without response variation never reach the fitter."""
        calls = itertools.count()

        def counting(data):
            next(calls)
            return SimpleNamespace(ed50=1.0)

        monkeypatch.setattr(_bootstrap, "fit_ll2", counting)
        data = DoseResponseData(dose=[1, 2, 4], response=[0, 0, 0], total=[20, 20, 20])
        ci = bootstrap_ed50(data, 200, rng=0)
        assert ci.n_success == 0
        assert next(calls) == 0

    def test_flat_resamples_discarded(self):
        """Resamples drawn only from the zero rows, or only from the
        complete-response row, are dropped."""
        data = DoseResponseData(dose=[1, 2, 4], response=[0, 0, 20], total=[20, 20, 20])
        idx = np.random.default_rng(0).integers(0, 3, size=(300, 3))
        flat = int(np.sum(np.all(idx < 2, axis=1) | np.all(idx == 2, axis=1)))
        assert flat > 0
        ci = bootstrap_ed50(data, 300, rng=0)
        assert ci.n_success <= 300 - flat

    def test_below_min_success(self, mortality_data):
        ci = bootstrap_ed50(mortality_data, 60, rng=0, min_success=1000)
        assert not ci.is_defined
        assert ci.n_success > 0
        assert "undefined" in ci.summary()

    def test_zero_iterations(self, mortality_data):
        ci = bootstrap_ed50(mortality_data, 0, rng=0)
        assert not ci.is_defined
        assert ci.n_success == 0

    def test_failing_fits_discarded(self, mortality_data, monkeypatch):
        def boom(data):
            raise RuntimeError("singular resample")

        monkeypatch.setattr(_bootstrap, "fit_ll2", boom)
        ci = bootstrap_ed50(mortality_data, 100, rng=0)
        assert ci.n_success == 0
        assert not ci.is_defined

    def test_invalid_estimates_discarded(self, mortality_data, monkeypatch):
        bad = [-1.0, 0.0, np.inf, np.nan] * 25
        monkeypatch.setattr(_bootstrap, "fit_ll2", _fake_fit(bad))
        ci = bootstrap_ed50(mortality_data, 100, rng=0)
        assert ci.n_success == 0
        assert not ci.is_defined


# ---------------------------------------------------------------------------
# Percentile rule
# ---------------------------------------------------------------------------

class TestPercentileRule:

    def test_index_rule_100(self, synthetic_data, monkeypatch):
        """floor(0.025 * 100) = 2 and ceil(0.975 * 100) = 98."""
        values = np.random.default_rng(0).permutation(np.arange(1.0, 101.0))
        monkeypatch.setattr(_bootstrap, "fit_ll2", _fake_fit(values))
        ci = bootstrap_ed50(synthetic_data, 100, rng=0)
        assert ci.n_success == 100
        assert (ci.lower, ci.upper) == (3.0, 99.0)

    def test_index_rule_1000(self, synthetic_data, monkeypatch):
        monkeypatch.setattr(_bootstrap, "fit_ll2", _fake_fit(np.arange(1.0, 1001.0)))
        ci = bootstrap_ed50(synthetic_data, 1000, rng=0)
        assert (ci.lower, ci.upper) == (26.0, 976.0)

    def test_exactly_min_success(self, synthetic_data, monkeypatch):
        """50 accepted estimates are enough; the discarded ones are ignored."""
        values = list(np.arange(1.0, 51.0)) + [-1.0] * 10
        monkeypatch.setattr(_bootstrap, "fit_ll2", _fake_fit(values))
        ci = bootstrap_ed50(synthetic_data, 60, rng=0)
        assert ci.n_success == 50
        assert ci.is_defined
        # floor(1.25) = 1, ceil(48.75) = 49
        assert (ci.lower, ci.upper) == (2.0, 50.0)


class TestValidation:

    def test_too_few_rows(self):
        data = DoseResponseData(dose=[1, 2], response=[0, 1], total=[5, 5])
        with pytest.raises(ValueError, match="at least 3"):
            bootstrap_ed50(data, 10)

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"iterations": -1}, "iterations"),
            ({"conf_level": 1.5}, "conf_level"),
            ({"min_success": 0}, "min_success"),
            ({"n_jobs": 0}, "n_jobs"),
        ],
    )
    def test_bad_arguments(self, mortality_data, kwargs, match):
        with pytest.raises(ValueError, match=match):
            bootstrap_ed50(mortality_data, **kwargs)

    def test_result_type(self, mortality_data):
        assert isinstance(bootstrap_ed50(mortality_data, 10, rng=0), BootstrapCI)


def test_unseeded_runs_differ(mortality_data):
    """Without a seed each run draws fresh resamples."""
    runs = [tuple(bootstrap_ed50(mortality_data, 30).estimates) for _ in range(2)]
    assert runs[0] != runs[1]


def test_one_fit_per_trial(synthetic_data, monkeypatch):
    """Each trial consults the fitter exactly once."""
    counter = itertools.count()

    def counting(data):
        next(counter)
        return SimpleNamespace(ed50=1.0)

    monkeypatch.setattr(_bootstrap, "fit_ll2", counting)
    bootstrap_ed50(synthetic_data, 75, rng=0)
    assert next(counter) == 75
