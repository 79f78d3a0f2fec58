# metabpredict/viz.py
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from pathlib import Path
from typing import List, Optional

from . import config as C
from .evaluation import indexed_by_id

def correlation_histogram(res: pd.DataFrame, outpath: Path, alpha: float = C.ALPHA,
                          title: Optional[str] = None):
    """Distribution of per-metabolite observed-vs-predicted correlations; FDR hits shaded."""
    if res.empty or res["r"].dropna().empty:
        return
    d = res.dropna(subset=["r"]).copy()
    d["significant"] = np.where(d["p_adj"] < alpha, f"FDR < {alpha}", "n.s.")

    plt.figure(figsize=(7.0, 4.8))
    sns.histplot(data=d, x="r", hue="significant", bins=30, multiple="stack",
                 palette={"n.s.": "#9e9e9e", f"FDR < {alpha}": "#d62728"})
    plt.axvline(0, linestyle=":", linewidth=1)
    plt.xlabel("correlation (observed vs predicted)"); plt.ylabel("metabolites")
    plt.title(title or f"Prediction accuracy (n={len(d)})")

    outpath.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout(); plt.savefig(outpath, dpi=200); plt.close()

def observed_vs_predicted(observed: pd.DataFrame, predicted: pd.DataFrame, metabolites: List[str],
                          outpath: Path, id_col: Optional[str] = None, ncols: int = 4):
    obs, pred = indexed_by_id(observed, id_col), indexed_by_id(predicted, id_col)
    ids = obs.index.intersection(pred.index)
    metabolites = [m for m in metabolites if m in obs.columns and m in pred.columns]
    if not metabolites or ids.empty:
        return

    ncols = max(1, min(ncols, len(metabolites)))
    nrows = int(np.ceil(len(metabolites) / ncols))
    fig, axes = plt.subplots(nrows, ncols, figsize=(3.2 * ncols, 3.0 * nrows), squeeze=False)
    for ax, m in zip(axes.flat, metabolites):
        sns.regplot(x=obs.loc[ids, m].values, y=pred.loc[ids, m].values, ax=ax,
                    scatter_kws={"s": 12, "alpha": 0.7}, line_kws={"linewidth": 1})
        ax.set_title(str(m), fontsize=9)
        ax.set_xlabel("observed"); ax.set_ylabel("predicted")
    for ax in list(axes.flat)[len(metabolites):]:
        ax.axis("off")

    outpath.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout(); fig.savefig(outpath, dpi=200); plt.close(fig)
