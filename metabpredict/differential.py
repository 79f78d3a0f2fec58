# metabpredict/differential.py
import numpy as np
import pandas as pd
from typing import List, Optional
from scipy import stats
from statsmodels.stats.multitest import multipletests

from . import config as C

# R p.adjust names -> statsmodels multipletests names
_R_METHODS = {
    "fdr": "fdr_bh", "bh": "fdr_bh", "by": "fdr_by",
    "bonferroni": "bonferroni", "holm": "holm",
    "hochberg": "simes-hochberg", "hommel": "hommel", "none": None,
}
_SM_METHODS = {"bonferroni", "sidak", "holm-sidak", "holm", "simes-hochberg", "hommel",
               "fdr_bh", "fdr_by", "fdr_tsbh", "fdr_tsbky"}

def resolve_correction(method: str) -> Optional[str]:
    m = str(method)
    if m.lower() in _R_METHODS:
        return _R_METHODS[m.lower()]
    if m in _SM_METHODS:
        return m
    raise ValueError(f"Unknown multiple-testing correction: '{method}'")

def adjust_pvalues(p, method: str = C.FDR_METHOD) -> np.ndarray:
    p = np.nan_to_num(np.asarray(p, dtype=float), nan=1.0)
    sm_method = resolve_correction(method)
    if sm_method is None or p.size == 0:
        return p
    return multipletests(p, method=sm_method)[1]

def differential_table(df: pd.DataFrame, dep_col: Optional[str] = None, id_col: Optional[str] = None,
                       correction_method: str = "fdr") -> pd.DataFrame:
    """Welch t-test of every feature against a two-level grouping column, with corrected p-values."""
    if dep_col is None:
        raise ValueError("Please specify the column of your dependent variable (dep_col).")
    groups = df[dep_col]
    levels = groups.dropna().unique()
    if len(levels) != 2:
        raise ValueError(f"'{dep_col}' must have exactly two groups, found {len(levels)}.")

    # only columns holding numeric data are tested; text metadata would dilute the correction
    X = df.drop(columns=[c for c in (dep_col, id_col) if c is not None]).apply(
        pd.to_numeric, errors="coerce").astype(float)
    skipped = [c for c in X.columns if X[c].isna().all()]
    if skipped:
        print(f"[diff] skipping {len(skipped)} non-numeric columns: {', '.join(map(str, skipped))}")
    feats = [c for c in X.columns if c not in skipped]

    a_mask, b_mask = (groups == levels[0]).values, (groups == levels[1]).values
    rows = []
    for f in feats:
        x = X[f].values
        t, p = stats.ttest_ind(x[a_mask], x[b_mask], equal_var=False, nan_policy="omit")
        rows.append({"feature": f, "t": float(t), "p": float(p)})

    out = pd.DataFrame(rows, columns=["feature", "t", "p"])
    out["p_adj"] = adjust_pvalues(out["p"].values, correction_method)
    return out

def differential_abundance(df: pd.DataFrame, dep_col: Optional[str] = None, id_col: Optional[str] = None,
                           correction_method: str = "fdr", alpha: float = C.ALPHA) -> List[str]:
    """Names of features differing between the two groups of dep_col (corrected p < alpha)."""
    res = differential_table(df, dep_col=dep_col, id_col=id_col, correction_method=correction_method)
    return res.loc[res["p_adj"] < alpha, "feature"].tolist()
