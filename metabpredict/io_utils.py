# metabpredict/io_utils.py
import pandas as pd
from pathlib import Path
from typing import Dict, List, Optional

_EXCEL = {".xlsx"}
_TAB   = {".tsv", ".txt"}

def _suffix(p: Path) -> str:
    """Last meaningful suffix, skipping a trailing .gz."""
    sfx = [s.lower() for s in p.suffixes]
    if sfx and sfx[-1] == ".gz":
        sfx = sfx[:-1]
    return sfx[-1] if sfx else ""

def read_table(path) -> pd.DataFrame:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"No such table: {p}")
    ext = _suffix(p)
    if ext in _EXCEL:
        return pd.read_excel(p, engine="openpyxl")
    try:
        # pandas infers gzip from the .gz suffix
        if ext in _TAB:
            return pd.read_csv(p, sep="\t")
        return pd.read_csv(p, sep=",")
    except pd.errors.ParserError:
        return pd.read_csv(p, sep=None, engine="python")

def coerce_numeric(s: pd.Series) -> pd.Series:
    return pd.to_numeric(s, errors="coerce").astype(float)

def parse_csv_list(s: Optional[str]) -> List[str]:
    if not s: return []
    return [x.strip() for x in s.split(",") if x.strip()]

def parse_named_paths(items: Optional[List[str]]) -> Dict[str, Path]:
    """['Lloyd=a.csv', 'Franzosa=b.tsv.gz'] -> {'Lloyd': Path('a.csv'), ...} (order kept)."""
    out: Dict[str, Path] = {}
    for item in items or []:
        name, sep, path = item.partition("=")
        name, path = name.strip(), path.strip()
        if not sep or not name or not path:
            raise ValueError(f"Expected NAME=PATH, got '{item}'.")
        if name in out:
            raise ValueError(f"Cohort '{name}' given more than once.")
        out[name] = Path(path)
    return out

def load_cohorts(named_paths: Dict[str, Path], id_col: str) -> Dict[str, pd.DataFrame]:
    """Read one table per cohort; ID column first and as str, everything else numeric."""
    tables: Dict[str, pd.DataFrame] = {}
    for name, path in named_paths.items():
        df = read_table(path)
        if id_col not in df.columns:
            raise ValueError(f"{name}: table {path} must contain '{id_col}'.")
        df.columns = [str(c) for c in df.columns]
        ids = df[id_col].astype(str)
        values = df.drop(columns=[id_col]).apply(coerce_numeric)
        values.insert(0, id_col, ids)
        tables[name] = values.reset_index(drop=True)
        print(f"[load] {name}: {values.shape[0]} samples x {values.shape[1] - 1} columns from {path}")
    return tables
