"""Unit tests for the swap-training random forest orchestrator."""

import numpy as np
import pandas as pd
import pytest

import metabpredict.modeling as modeling
from metabpredict.modeling import _grid, _split_frames, rf_fit_predict


@pytest.fixture
def no_fitting(monkeypatch):
    """Fail loudly if any model is fitted."""
    def _boom(*args, **kwargs):
        raise AssertionError("model fitting should not start")
    monkeypatch.setattr(modeling, "fit_metabolite", _boom)


def test_three_cohorts_rejected_before_fitting(two_cohorts, no_fitting):
    metab, feats = two_cohorts
    metab = {**metab, "Third": metab["Lloyd"]}
    feats = {**feats, "Third": feats["Lloyd"]}
    with pytest.raises(ValueError, match="Only two datasets"):
        rf_fit_predict(metab, feats, tuning=False)


def test_mismatched_names_rejected(two_cohorts, no_fitting):
    metab, feats = two_cohorts
    feats = {"Lloyd": feats["Lloyd"], "Other": feats["Franzosa"]}
    with pytest.raises(ValueError, match="match by name"):
        rf_fit_predict(metab, feats, tuning=False)


def test_mismatched_metabolites_rejected(two_cohorts, no_fitting):
    metab, feats = two_cohorts
    metab = {"Lloyd": metab["Lloyd"], "Franzosa": metab["Franzosa"].rename(columns={"butyrate": "acetate"})}
    with pytest.raises(ValueError, match="Metabolites across both datasets"):
        rf_fit_predict(metab, feats, tuning=False)


def test_misaligned_samples_rejected(two_cohorts, no_fitting):
    metab, feats = two_cohorts
    shuffled = feats["Franzosa"].iloc[::-1].reset_index(drop=True)
    with pytest.raises(ValueError, match="Sample names must match"):
        rf_fit_predict(metab, {"Lloyd": feats["Lloyd"], "Franzosa": shuffled}, tuning=False)


def test_five_sample_end_to_end(five_sample_cohorts):
    metab, feats = five_sample_cohorts
    preds = rf_fit_predict(metab, feats, tuning=False, n_trees=11)

    assert list(preds) == ["A", "B"]
    for name, pred in preds.items():
        assert pred["ID"].tolist() == metab[name]["ID"].tolist()
        assert list(pred.columns) == ["ID", "glucose"]
        assert np.isfinite(pred["glucose"]).all()


def test_tuned_swap_predicts_every_metabolite(two_cohorts, capsys):
    metab, feats = two_cohorts
    preds = rf_fit_predict(metab, feats, tuning=True, n_trees=15, n_folds=3, grid_size=3, seed=1)

    for name, pred in preds.items():
        assert pred.shape == metab[name].shape
        assert list(pred.columns) == ["ID", "glucose", "butyrate"]

    out = capsys.readouterr().out
    assert "Fitting model for glucose (1) using dataset: Lloyd" in out
    assert "Generated predicted metabolite abundance for butyrate (2) in dataset: Lloyd" in out
    assert "best mtry=" in out


def test_predictions_follow_signal(two_cohorts):
    metab, feats = two_cohorts
    preds = rf_fit_predict(metab, feats, tuning=False, n_trees=101)
    r = np.corrcoef(preds["Franzosa"]["glucose"], metab["Franzosa"]["glucose"])[0, 1]
    assert r > 0.5


def test_same_seed_is_reproducible(five_sample_cohorts):
    metab, feats = five_sample_cohorts
    a = rf_fit_predict(metab, feats, tuning=False, n_trees=11, seed=5)
    b = rf_fit_predict(metab, feats, tuning=False, n_trees=11, seed=5)
    pd.testing.assert_frame_equal(a["A"], b["A"])


def test_split_frames_fills_missing_features_and_drops_zero_variance():
    train = pd.DataFrame({"__metab__": [1.0, 2.0, 3.0], "K1": [1.0, 2.0, 3.0],
                          "flat": [5.0, 5.0, 5.0], "only_train": [0.1, 0.2, np.nan]})
    test = pd.DataFrame({"__metab__": [9.0, 9.0], "K1": [2.0, 4.0], "only_test": [7.0, 8.0]})

    X_train, y, X_test = _split_frames(train, test)

    assert list(X_train.columns) == ["K1", "only_train"]
    assert list(X_test.columns) == ["K1", "only_train"]
    assert X_train["only_train"].tolist() == [0.1, 0.2, 0.0]
    assert X_test["only_train"].tolist() == [0.0, 0.0]
    assert y.tolist() == [1.0, 2.0, 3.0]


def test_split_frames_without_usable_predictors_raises():
    train = pd.DataFrame({"__metab__": [1.0, 2.0], "flat": [1.0, 1.0]})
    test = pd.DataFrame({"__metab__": [1.0], "flat": [3.0]})
    with pytest.raises(ValueError, match="non-zero variance"):
        _split_frames(train, test)


def test_grid_is_space_filling_within_bounds():
    grid = _grid(n_predictors=50, size=10, seed=123)
    mtry = [g["max_features"][0] for g in grid]
    min_n = [g["min_samples_split"][0] for g in grid]

    assert len(grid) == 10
    assert len(set(mtry)) == 10 and len(set(min_n)) == 10
    assert min(mtry) == 1 and max(mtry) == 50
    assert min(min_n) == 2 and max(min_n) == 40
    assert _grid(50, 10, 123) == grid


def test_grid_collapses_when_few_predictors():
    grid = _grid(n_predictors=2, size=10, seed=0)
    assert sorted(g["max_features"][0] for g in grid) == [1, 2]


def test_five_sample_end_to_end_with_tuning(five_sample_cohorts):
    metab, feats = five_sample_cohorts
    # 10 folds requested; capped at the 5 training samples
    preds = rf_fit_predict(metab, feats, tuning=True, n_trees=11, grid_size=3)

    for name, pred in preds.items():
        assert pred["ID"].tolist() == metab[name]["ID"].tolist()
        assert list(pred.columns) == ["ID", "glucose"]
        assert np.isfinite(pred["glucose"]).all()


@pytest.mark.parametrize("n_trees", [1000, 0, -3])
def test_even_or_nonpositive_tree_count_rejected(two_cohorts, no_fitting, n_trees):
    metab, feats = two_cohorts
    with pytest.raises(ValueError, match="odd positive"):
        rf_fit_predict(metab, feats, tuning=False, n_trees=n_trees)
