"""Unit tests for prediction summaries and differential agreement."""

import numpy as np
import pandas as pd
import pytest

from metabpredict.evaluation import differential_f1, prediction_correlations


@pytest.fixture
def observed() -> pd.DataFrame:
    rng = np.random.default_rng(11)
    n = 16
    return pd.DataFrame({
        "ID": [f"s{i}" for i in range(n)],
        "good": np.arange(n, dtype=float),
        "bad": rng.normal(0, 1, n),
        "flat": np.ones(n),
    })


def test_perfect_predictions_correlate(observed):
    predicted = observed.copy()
    predicted["good"] = predicted["good"] * 2 + 1
    predicted["flat"] = np.linspace(0, 1, len(observed))

    res = prediction_correlations(observed, predicted)

    assert list(res.columns) == ["metabolite", "r", "p", "n", "p_adj"]
    good = res.set_index("metabolite").loc["good"]
    assert good["r"] == pytest.approx(1.0)
    assert good["n"] == len(observed)

    flat = res.set_index("metabolite").loc["flat"]
    assert np.isnan(flat["r"])
    assert flat["p_adj"] == 1.0


def test_correlations_use_shared_samples_only(observed):
    predicted = observed.iloc[::-1].head(10).copy()
    res = prediction_correlations(observed, predicted, method="pearson")
    assert (res["n"] == 10).all()
    assert res.set_index("metabolite").loc["good", "r"] == pytest.approx(1.0)


def test_unknown_correlation_method_raises(observed):
    with pytest.raises(ValueError, match="Unknown correlation method"):
        prediction_correlations(observed, observed, method="kendall")


def test_differential_f1_perfect_agreement():
    n = 12
    ids = [f"s{i}" for i in range(n)]
    groups = pd.Series(["case"] * 6 + ["ctrl"] * 6, index=ids)
    base = np.tile(np.linspace(0, 1, 6), 2)
    obs = pd.DataFrame({"ID": ids, "up": np.r_[np.full(6, 10.0), np.zeros(6)] + base, "same": base})

    f1 = differential_f1(obs, obs.copy(), groups)

    assert f1["observed"] == ["up"]
    assert f1["predicted"] == ["up"]
    assert f1["f1"] == pytest.approx(1.0)
    assert f1["precision"] == pytest.approx(1.0)


def test_differential_f1_no_overlap_scores_zero():
    n = 12
    ids = [f"s{i}" for i in range(n)]
    groups = pd.Series(["case"] * 6 + ["ctrl"] * 6, index=ids)
    base = np.tile(np.linspace(0, 1, 6), 2)
    shift = np.r_[np.full(6, 10.0), np.zeros(6)]
    obs = pd.DataFrame({"ID": ids, "m1": shift + base, "m2": base})
    pred = pd.DataFrame({"ID": ids, "m1": base, "m2": shift + base})

    f1 = differential_f1(obs, pred, groups)

    assert f1["observed"] == ["m1"]
    assert f1["predicted"] == ["m2"]
    assert f1["f1"] == 0.0
