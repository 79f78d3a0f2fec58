# metabpredict/matching.py
import pandas as pd
from typing import Dict, List, Optional

def _id_col(df: pd.DataFrame, id_col: Optional[str]) -> str:
    return df.columns[0] if id_col is None else id_col

def sample_ids(df: pd.DataFrame, id_col: Optional[str] = None) -> pd.Series:
    return df[_id_col(df, id_col)].astype(str)

def match_samples(tables_a: Dict[str, pd.DataFrame], tables_b: Dict[str, pd.DataFrame],
                  id_col: Optional[str] = None) -> Dict[str, List[str]]:
    """Per cohort, the sample IDs present in both collections (order of tables_a, no duplicates)."""
    if set(tables_a) != set(tables_b):
        raise ValueError(f"Cohort names must match exactly: {sorted(tables_a)} vs {sorted(tables_b)}")
    samples: Dict[str, List[str]] = {}
    for name in tables_a:
        b_ids = set(sample_ids(tables_b[name], id_col))
        common = [s for s in sample_ids(tables_a[name], id_col).drop_duplicates() if s in b_ids]
        samples[name] = common
        print(f"[match] {name}: {len(common)} shared samples")
    return samples

def subset_to_samples(tables: Dict[str, pd.DataFrame], samples: Dict[str, List[str]],
                      id_col: Optional[str] = None) -> Dict[str, pd.DataFrame]:
    """Reorder/subset every table to its cohort's matched IDs so paired tables line up row by row."""
    out: Dict[str, pd.DataFrame] = {}
    for name, df in tables.items():
        ids = sample_ids(df, id_col)
        keep = df.loc[~ids.duplicated()].copy()
        keep.index = ids.loc[keep.index].values
        out[name] = keep.loc[samples[name]].reset_index(drop=True)
    return out

def shared_targets(tables: Dict[str, pd.DataFrame], id_col: Optional[str] = None) -> Dict[str, pd.DataFrame]:
    """Keep only target columns present in every cohort, in the first cohort's column order."""
    names = list(tables)
    if not names:
        return {}
    first = tables[names[0]]
    idc = _id_col(first, id_col)
    common = [c for c in first.columns if c != idc and all(c in tables[n].columns for n in names[1:])]
    for n in names:
        dropped = tables[n].shape[1] - 1 - len(common)
        if dropped:
            print(f"[targets] {n}: dropping {dropped} columns not shared across cohorts")
    return {n: tables[n][[_id_col(tables[n], id_col)] + common].copy() for n in names}
