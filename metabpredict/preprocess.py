# metabpredict/preprocess.py
import math
import numpy as np
import pandas as pd
from typing import Optional, Tuple

from . import config as C

def _split_id(df: pd.DataFrame, id_col: Optional[str]) -> Tuple[Optional[pd.Series], pd.DataFrame]:
    if id_col is None:
        return None, df.copy()
    return df[id_col], df.drop(columns=[id_col])

def _join_id(ids: Optional[pd.Series], X: pd.DataFrame) -> pd.DataFrame:
    if ids is None:
        return X
    X = X.copy()
    X.insert(0, ids.name, ids.values)
    return X

def _zero_na(X: pd.DataFrame) -> pd.DataFrame:
    if X.isna().to_numpy().any():
        print("Changing all NA values to zero")
        X = X.fillna(0.0)
    return X

def relative_abundance(df: pd.DataFrame, id_col: Optional[str] = None) -> pd.DataFrame:
    """Convert raw counts to per-sample relative abundances (samples in rows)."""
    ids, X = _split_id(df, id_col)
    X = _zero_na(X).astype(float)
    X = X.div(X.sum(axis=1), axis=0)
    return _join_id(ids, X)

def abundance_filter(df: pd.DataFrame,
                     dataset_threshold: float = C.DATASET_THRESHOLD,
                     sample_threshold: float = C.SAMPLE_THRESHOLD,
                     id_col: Optional[str] = None,
                     renormalize: bool = False) -> pd.DataFrame:
    """
    Drop low-abundance features. With the defaults a feature must exceed
    0.01% relative abundance in more than 10% of samples to be kept.
    """
    if dataset_threshold == 0:
        print("No filtering will be applied due to dataset_threshold being set to zero.")
        return df
    ids, X = _split_id(df, id_col)
    X = _zero_na(X)

    threshold = math.ceil(dataset_threshold * X.shape[0])
    counts = (X > sample_threshold).sum(axis=0)
    keep = counts[counts > threshold].index
    X_filt = X[keep]
    if renormalize:
        X_filt = relative_abundance(X_filt)

    print(f"{X_filt.shape[1]} out of {X.shape[1]} columns were retained.")
    return _join_id(ids, X_filt)

def log_autoscale(df: pd.DataFrame, impute: bool = False, glog: bool = False,
                  id_col: Optional[str] = None) -> pd.DataFrame:
    """
    Log-transform then autoscale (mean 0, SD 1 per column).

    impute: replace zeros with 1/4 of the column's smallest non-zero value.
    glog:   generalized log2 instead of log10; finite for zero and negative
            values as long as the dataset minimum is non-zero.
    """
    ids, X = _split_id(df, id_col)
    X = _zero_na(X).astype(float)

    if impute:
        for c in X.columns:
            pos = X[c][X[c] > 0]
            if pos.empty:
                continue
            X.loc[X[c] == 0, c] = pos.min() / 4.0

    with np.errstate(divide="ignore", invalid="ignore"):
        if glog:
            m = float(X.to_numpy().min())
            X = np.log2((X + np.sqrt(X ** 2 + m ** 2)) / 2.0)
        else:
            X = np.log10(X)
        X = X.replace([np.inf, -np.inf], np.nan)
        X = (X - X.mean(axis=0)) / X.std(axis=0, ddof=1)
    return _join_id(ids, X)
