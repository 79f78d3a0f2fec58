# metabpredict/reports.py
import pandas as pd
from typing import Optional
from . import config as C

def print_well_predicted(res: pd.DataFrame, alpha: float = C.ALPHA,
                         max_rows: Optional[int] = 120, label: str = "") -> pd.DataFrame:
    """Print metabolites whose predictions correlate positively with observations at FDR < alpha."""
    cols = ["metabolite", "r", "p", "p_adj", "n"]
    if res.empty or "p_adj" not in res.columns:
        print("No results to report."); return pd.DataFrame(columns=cols)
    good = res.loc[(res["p_adj"] < alpha) & (res["r"] > 0), cols]
    tag = f" [{label}]" if label else ""
    if good.empty:
        print(f"No metabolites well predicted at FDR < {alpha}{tag}."); return good
    good = good.sort_values(["p_adj", "r"], ascending=[True, False])
    print(f"\nWell-predicted metabolites{tag} (FDR < {alpha}, r > 0) n={len(good)} of {len(res)}")
    with pd.option_context("display.max_rows", max_rows, "display.max_columns", None,
                           "display.width", 160, "display.float_format", lambda x: f"{x:.3g}"):
        print(good.to_string(index=False))
    return good
