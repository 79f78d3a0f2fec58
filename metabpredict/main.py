# metabpredict/main.py
import argparse
import json
import numpy as np
from pathlib import Path

from . import config as C
from .io_utils import load_cohorts, parse_csv_list, parse_named_paths, read_table
from .preprocess import relative_abundance, abundance_filter, log_autoscale
from .matching import match_samples, subset_to_samples, shared_targets
from .differential import differential_table
from .modeling import rf_fit_predict
from .evaluation import prediction_correlations, differential_f1
from .reports import print_well_predicted
from .viz import correlation_histogram, observed_vs_predicted

# ---------------- Shared helpers ----------------
def _load_and_prep(args):
    """Load -> feature normalize/filter -> target log-autoscale -> shared targets -> match samples."""
    feat_paths = parse_named_paths(args.features)
    targ_paths = parse_named_paths(args.targets)
    if len(feat_paths) != 2 or len(targ_paths) != 2:
        raise SystemExit("--features and --targets each need exactly two NAME=PATH entries")

    feats = load_cohorts(feat_paths, args.id_col)
    targs = load_cohorts(targ_paths, args.id_col)

    if not args.no_feature_prep:
        feats = {n: relative_abundance(df, id_col=args.id_col) for n, df in feats.items()}
        feats = {n: abundance_filter(df, dataset_threshold=args.dataset_threshold,
                                     sample_threshold=args.sample_threshold,
                                     id_col=args.id_col, renormalize=args.renormalize)
                 for n, df in feats.items()}
    targs = {n: log_autoscale(df, impute=args.impute, glog=args.glog, id_col=args.id_col)
             for n, df in targs.items()}
    targs = shared_targets(targs, id_col=args.id_col)

    wanted = parse_csv_list(args.metabolites)
    if wanted:
        targs = {n: df[[args.id_col] + [m for m in wanted if m in df.columns]] for n, df in targs.items()}
    print(f"[prep] metabolites to model: {targs[next(iter(targs))].shape[1] - 1}")

    samples = match_samples(targs, feats, id_col=args.id_col)
    # same cohort order in both collections
    feats = {n: feats[n] for n in targs}
    return subset_to_samples(targs, samples, args.id_col), subset_to_samples(feats, samples, args.id_col)

def _evaluate(targs, preds, args, outdir: Path):
    groups = None
    if args.groups:
        if not args.group_col:
            raise SystemExit("--group-col is required with --groups")
        meta = read_table(args.groups)
        groups = meta.set_index(meta[args.id_col].astype(str))[args.group_col]

    summary = {}
    for name, pred in preds.items():
        res = prediction_correlations(targs[name], pred, id_col=args.id_col, method=args.corr_method)
        out = outdir / f"correlations_{name}.csv"
        res.to_csv(out, index=False)
        good = print_well_predicted(res, label=name)
        print(f"[eval] {name}: saved {out}  well-predicted={len(good)}/{len(res)}")

        correlation_histogram(res, outdir / f"correlation_hist_{name}.png", title=name)
        top = res.dropna(subset=["r"]).nlargest(args.top_n, "r")["metabolite"].tolist()
        observed_vs_predicted(targs[name], pred, top, outdir / f"scatter_top_{name}.png", id_col=args.id_col)

        entry = {"n_metabolites": int(len(res)), "well_predicted": int(len(good)),
                 "median_r": float(res["r"].median()) if len(res) else None}
        if groups is not None:
            f1 = differential_f1(targs[name], pred, groups, id_col=args.id_col)
            print(f"[eval] {name}: differential F1={f1['f1']:.3f} "
                  f"(observed={len(f1['observed'])}, predicted={len(f1['predicted'])})")
            entry["differential"] = f1
        summary[name] = entry

    with open(outdir / "summary.json", "w") as fh:
        json.dump(summary, fh, indent=2)

# ---------------- Analyses ----------------
def run_predict(args, outdir: Path):
    targs, feats = _load_and_prep(args)
    preds = rf_fit_predict(targs, feats, seed=args.seed, tuning=not args.no_tuning,
                           n_trees=args.trees, n_folds=args.folds, grid_size=args.grid_size,
                           id_col=args.id_col)
    for name, pred in preds.items():
        out = outdir / f"predictions_{name}.csv"
        pred.to_csv(out, index=False)
        print(f"[predict] saved {out}  shape={pred.shape}")
    _evaluate(targs, preds, args, outdir)

def run_diff(args, outdir: Path):
    df = read_table(args.table)
    res = differential_table(df, dep_col=args.group, id_col=args.id_col,
                             correction_method=args.correction)
    out = outdir / f"differential_{Path(args.table).name.split('.')[0]}.csv"
    res.to_csv(out, index=False)
    sig = res.loc[res["p_adj"] < C.ALPHA, "feature"].tolist()
    print(f"[diff] saved results: {out}  rows={len(res)}  sig(adj<{C.ALPHA})={len(sig)}")
    for f in sig:
        print(f"  {f}")

# ---------------- CLI ----------------
def main(argv=None):
    parser = argparse.ArgumentParser(description="Metabolite prediction from microbial function profiles")
    sub = parser.add_subparsers(dest="cmd", required=True)

    # Global knobs
    parser.add_argument("--id-col", default=C.ID_COL, help="Sample identifier column in every table")
    parser.add_argument("--outdir", default=str(C.OUTDIR), help="Directory for results")

    p_pred = sub.add_parser("predict", help="Swap-validated random forest prediction of metabolites")
    p_pred.add_argument("--features", nargs=2, required=True, metavar="NAME=PATH",
                        help="Per-cohort KO/gene-function abundance tables")
    p_pred.add_argument("--targets", nargs=2, required=True, metavar="NAME=PATH",
                        help="Per-cohort metabolite abundance tables")
    p_pred.add_argument("--metabolites", default=None,
                        help="Comma-separated metabolite columns to model (default: all shared)")
    p_pred.add_argument("--no-feature-prep", action="store_true",
                        help="Skip relative-abundance normalization and abundance filtering of features")
    p_pred.add_argument("--dataset-threshold", type=float, default=C.DATASET_THRESHOLD)
    p_pred.add_argument("--sample-threshold", type=float, default=C.SAMPLE_THRESHOLD)
    p_pred.add_argument("--renormalize", action="store_true", help="Renormalize features after filtering")
    p_pred.add_argument("--impute", action="store_true", help="Quarter-min imputation of zero metabolite values")
    p_pred.add_argument("--glog", action="store_true", help="Generalized log instead of log10")
    p_pred.add_argument("--no-tuning", action="store_true", help="Skip the hyperparameter grid search")
    p_pred.add_argument("--trees", type=int, default=C.N_TREES)
    p_pred.add_argument("--folds", type=int, default=C.CV_FOLDS)
    p_pred.add_argument("--grid-size", type=int, default=C.GRID_SIZE)
    p_pred.add_argument("--seed", type=int, default=C.RANDOM_SEED)
    p_pred.add_argument("--corr-method", choices=["spearman", "pearson"], default=C.CORR_METHOD)
    p_pred.add_argument("--top-n", type=int, default=8, help="Metabolites shown in the scatter panel")
    p_pred.add_argument("--groups", default=None,
                        help="Sample metadata table with a two-level group column (enables differential F1)")
    p_pred.add_argument("--group-col", default=None)

    p_diff = sub.add_parser("diff", help="Welch t-test differential abundance with multiple-testing correction")
    p_diff.add_argument("--table", required=True, help="Table with features and a group column")
    p_diff.add_argument("--group", required=True, help="Two-level grouping column")
    p_diff.add_argument("--correction", default="fdr",
                        help="fdr | BH | BY | bonferroni | holm | hochberg | hommel | none")

    args = parser.parse_args(argv)

    np.random.seed(args.seed if args.cmd == "predict" else C.RANDOM_SEED)
    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    if args.cmd == "predict":
        run_predict(args, outdir)
    elif args.cmd == "diff":
        run_diff(args, outdir)

if __name__ == "__main__":
    main()
