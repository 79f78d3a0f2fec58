"""Unit tests for the well-predicted metabolite report."""

import pandas as pd

from metabpredict.reports import print_well_predicted


def test_reports_only_positive_significant(capsys):
    res = pd.DataFrame({
        "metabolite": ["glucose", "butyrate", "lactate", "urea"],
        "r": [0.8, -0.7, 0.1, 0.6],
        "p": [0.001, 0.001, 0.5, 0.002],
        "p_adj": [0.002, 0.002, 0.5, 0.004],
        "n": [30, 30, 30, 30],
    })
    good = print_well_predicted(res, label="Lloyd")

    assert good["metabolite"].tolist() == ["glucose", "urea"]
    assert "n=2 of 4" in capsys.readouterr().out


def test_reports_empty_results(capsys):
    good = print_well_predicted(pd.DataFrame())
    assert good.empty
    assert "No results to report." in capsys.readouterr().out
