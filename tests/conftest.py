"""Shared synthetic cohorts for metabpredict tests."""

import numpy as np
import pandas as pd
import pytest


def _cohort(prefix: str, n: int, seed: int):
    rng = np.random.default_rng(seed)
    ids = [f"{prefix}{i:02d}" for i in range(n)]
    kos = pd.DataFrame(rng.uniform(1, 100, size=(n, 5)), columns=[f"K0000{i}" for i in range(1, 6)])
    feats = kos.copy()
    feats.insert(0, "ID", ids)
    # metabolite driven by the first KO so forests have signal to find
    metab = pd.DataFrame({
        "ID": ids,
        "glucose": 0.5 * kos["K00001"].values + 10 + rng.normal(0, 1, n),
        "butyrate": rng.uniform(1, 10, n),
    })
    return metab, feats


@pytest.fixture
def two_cohorts():
    """(metabolite tables, feature tables) for cohorts 'Lloyd' and 'Franzosa', 12 samples each."""
    m1, f1 = _cohort("L", 12, 1)
    m2, f2 = _cohort("F", 12, 2)
    return {"Lloyd": m1, "Franzosa": m2}, {"Lloyd": f1, "Franzosa": f2}


@pytest.fixture
def five_sample_cohorts():
    """Two cohorts with five aligned samples and one shared metabolite."""
    m1, f1 = _cohort("A", 5, 3)
    m2, f2 = _cohort("B", 5, 4)
    return ({"A": m1[["ID", "glucose"]], "B": m2[["ID", "glucose"]]},
            {"A": f1, "B": f2})
