# metabpredict/evaluation.py
import numpy as np
import pandas as pd
from typing import Dict, Optional
from scipy import stats
from sklearn.metrics import f1_score, precision_score, recall_score

from . import config as C
from .differential import adjust_pvalues, differential_abundance
from .matching import sample_ids

MIN_N = 3

def indexed_by_id(df: pd.DataFrame, id_col: Optional[str]) -> pd.DataFrame:
    ids = sample_ids(df, id_col)
    out = df.drop(columns=[df.columns[0] if id_col is None else id_col])
    out.index = ids.values
    return out

def prediction_correlations(observed: pd.DataFrame, predicted: pd.DataFrame,
                            id_col: Optional[str] = None, method: str = C.CORR_METHOD,
                            fdr_method: str = C.FDR_METHOD) -> pd.DataFrame:
    """
    Per-metabolite correlation between observed and predicted abundances,
    on the samples both tables share. Columns: metabolite, r, p, n, p_adj.
    """
    if method not in ("spearman", "pearson"):
        raise ValueError(f"Unknown correlation method: '{method}'")
    corr = stats.spearmanr if method == "spearman" else stats.pearsonr

    obs, pred = indexed_by_id(observed, id_col), indexed_by_id(predicted, id_col)
    shared_ids = obs.index.intersection(pred.index)
    rows = []
    for m in [c for c in pred.columns if c in obs.columns]:
        x = pd.to_numeric(obs.loc[shared_ids, m], errors="coerce").astype(float)
        y = pd.to_numeric(pred.loc[shared_ids, m], errors="coerce").astype(float)
        valid = x.notna() & y.notna()
        n = int(valid.sum())
        if n < MIN_N:
            continue
        xv, yv = x[valid].values, y[valid].values
        if np.ptp(xv) == 0 or np.ptp(yv) == 0:
            # constant input: correlation undefined
            rows.append({"metabolite": m, "r": np.nan, "p": np.nan, "n": n})
            continue
        r, p = corr(xv, yv)
        rows.append({"metabolite": m, "r": float(r), "p": float(p), "n": n})

    out = pd.DataFrame(rows, columns=["metabolite", "r", "p", "n"])
    out["p_adj"] = adjust_pvalues(out["p"].values, fdr_method)
    return out.sort_values(["p_adj", "p", "metabolite"]).reset_index(drop=True)

def differential_f1(observed: pd.DataFrame, predicted: pd.DataFrame, groups: pd.Series,
                    id_col: Optional[str] = None, correction_method: str = "fdr") -> Dict[str, object]:
    """
    Agreement between differentially abundant metabolites in observed vs predicted data.
    `groups` is a two-level Series indexed by sample ID.
    """
    obs, pred = indexed_by_id(observed, id_col), indexed_by_id(predicted, id_col)
    groups = groups.copy()
    groups.index = groups.index.astype(str)
    shared_ids = obs.index.intersection(pred.index).intersection(groups.index)
    metabs = [c for c in pred.columns if c in obs.columns]

    def _diff(X: pd.DataFrame):
        d = X.loc[shared_ids, metabs].copy()
        d["__group__"] = groups.loc[shared_ids].values
        return differential_abundance(d, dep_col="__group__", correction_method=correction_method)

    obs_hits, pred_hits = _diff(obs), _diff(pred)
    y_true = [m in set(obs_hits) for m in metabs]
    y_pred = [m in set(pred_hits) for m in metabs]
    return {
        "observed": obs_hits,
        "predicted": pred_hits,
        "precision": float(precision_score(y_true, y_pred, zero_division=0)),
        "recall": float(recall_score(y_true, y_pred, zero_division=0)),
        "f1": float(f1_score(y_true, y_pred, zero_division=0)),
    }
