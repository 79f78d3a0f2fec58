# metabpredict/modeling.py
import time
import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Tuple
from sklearn.ensemble import RandomForestRegressor
from sklearn.model_selection import GridSearchCV, KFold

from . import config as C
from .matching import sample_ids


TARGET = "__metab__"

def _check_inputs(metab_tables: Dict[str, pd.DataFrame],
                  feature_tables: Dict[str, pd.DataFrame],
                  id_col: Optional[str]) -> None:
    if len(metab_tables) != 2 or len(feature_tables) != 2:
        raise ValueError("Only two datasets are accepted.")
    if list(metab_tables) != list(feature_tables):
        raise ValueError("Elements in both collections must match by name.")
    a, b = (list(t.columns) for t in metab_tables.values())
    if a != b:
        raise ValueError("Metabolites across both datasets must match.")
    for name in metab_tables:
        m_ids = sample_ids(metab_tables[name], id_col)
        f_ids = sample_ids(feature_tables[name], id_col)
        if len(m_ids) != len(f_ids) or not (m_ids.values == f_ids.values).all():
            raise ValueError(f"Sample names must match ({name}).")

def _assemble(metab: pd.DataFrame, feats: pd.DataFrame, metabolite: str,
              id_col: Optional[str]) -> pd.DataFrame:
    """Features plus the one active metabolite renamed to TARGET; identifier dropped."""
    X = feats.drop(columns=[feats.columns[0] if id_col is None else id_col]).reset_index(drop=True)
    X.insert(0, TARGET, metab[metabolite].values)
    return X

def _split_frames(train: pd.DataFrame, test: pd.DataFrame) -> Tuple[pd.DataFrame, pd.Series, pd.DataFrame]:
    """Stack train/test (features absent from one cohort become 0), then drop zero-variance predictors."""
    dt = pd.concat([train.assign(__case__="train"), test.assign(__case__="test")],
                   ignore_index=True, sort=False)
    case = dt.pop("__case__")
    dt = dt.fillna(0.0)
    tr, te = dt.loc[case == "train"].copy(), dt.loc[case == "test"].copy()
    y = tr.pop(TARGET).astype(float)
    te = te.drop(columns=[TARGET])

    nunique = tr.nunique(dropna=False)
    keep = nunique[nunique > 1].index
    if len(keep) == 0:
        raise ValueError("No predictors with non-zero variance in the training data.")
    return tr[keep].astype(float), y, te[keep].astype(float)

def _grid(n_predictors: int, size: int, seed: int) -> List[dict]:
    """
    Space-filling (Latin hypercube) grid over mtry x min_n:
    each dimension gets `size` evenly spaced levels, paired by a seeded permutation.
    """
    lo, hi = C.MIN_N_RANGE
    mtry = np.unique(np.round(np.linspace(1, n_predictors, size)).astype(int))
    min_n = np.round(np.linspace(lo, hi, len(mtry))).astype(int)
    min_n = np.random.default_rng(seed).permutation(min_n)
    return [{"max_features": [int(m)], "min_samples_split": [int(n)]} for m, n in zip(mtry, min_n)]

def fit_metabolite(X_train: pd.DataFrame, y_train: pd.Series, seed: int = C.RANDOM_SEED,
                   tuning: bool = True, n_trees: int = C.N_TREES, n_folds: int = C.CV_FOLDS,
                   grid_size: int = C.GRID_SIZE) -> RandomForestRegressor:
    """Fit one random forest; with tuning, pick (mtry, min_n) by k-fold CV RMSE and refit on all rows."""
    rf = RandomForestRegressor(n_estimators=n_trees, random_state=seed, n_jobs=1)
    if not tuning:
        return rf.fit(X_train, y_train)

    folds = min(n_folds, len(y_train))
    if folds < 2:
        raise ValueError(f"Need at least 2 training samples for cross-validation, got {len(y_train)}.")
    search = GridSearchCV(
        rf,
        param_grid=_grid(X_train.shape[1], grid_size, seed),
        scoring="neg_root_mean_squared_error",
        cv=KFold(n_splits=folds, shuffle=True, random_state=seed),
        refit=True,
    )
    search.fit(X_train, y_train)
    best = search.best_params_
    print(f"[rf]   best mtry={best['max_features']} min_n={best['min_samples_split']} "
          f"cv_rmse={-search.best_score_:.4g}")
    return search.best_estimator_

# ----- Public API -----
def rf_fit_predict(metab_tables: Dict[str, pd.DataFrame],
                   feature_tables: Dict[str, pd.DataFrame],
                   seed: int = C.RANDOM_SEED,
                   tuning: bool = True,
                   n_trees: int = C.N_TREES,
                   n_folds: int = C.CV_FOLDS,
                   grid_size: int = C.GRID_SIZE,
                   id_col: Optional[str] = None) -> Dict[str, pd.DataFrame]:
    """
    Swap validation: for each metabolite, train on one cohort and predict the other, then reverse.

    Both dicts hold exactly two cohorts under the same names and order. Each cohort's
    metabolite and feature tables must list the same sample IDs in the same order, and
    metabolite columns must be identical across cohorts. The ID column is `id_col`, or
    the first column when None.

    Returns cohort -> table of predicted abundances (ID column + one column per metabolite).
    """
    _check_inputs(metab_tables, feature_tables, id_col)
    if n_trees < 1 or n_trees % 2 == 0:
        raise ValueError(f"n_trees must be an odd positive number to resolve tie votes, got {n_trees}.")

    names = list(metab_tables)
    first = metab_tables[names[0]]
    idc = first.columns[0] if id_col is None else id_col
    metabolites = [c for c in first.columns if c != idc]

    preds: Dict[str, pd.DataFrame] = {}
    for i, train_name in enumerate(names):
        test_name = names[1 - i]
        test_metab = metab_tables[test_name]
        out = test_metab[[test_metab.columns[0] if id_col is None else id_col]].copy().reset_index(drop=True)

        for j, m in enumerate(metabolites, start=1):
            start = time.perf_counter()
            print(f"[rf] Fitting model for {m} ({j}) using dataset: {train_name}")

            train = _assemble(metab_tables[train_name], feature_tables[train_name], m, id_col)
            test = _assemble(test_metab, feature_tables[test_name], m, id_col)
            X_train, y_train, X_test = _split_frames(train, test)

            model = fit_metabolite(X_train, y_train, seed=seed, tuning=tuning, n_trees=n_trees,
                                   n_folds=n_folds, grid_size=grid_size)
            out[m] = model.predict(X_test)

            print(f"[rf] Generated predicted metabolite abundance for {m} ({j}) in dataset: {test_name}")
            print(f"[rf] elapsed {time.perf_counter() - start:.2f}s")

        preds[test_name] = out

    return {n: preds[n] for n in names}
