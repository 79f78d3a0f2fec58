# metabpredict/config.py
from pathlib import Path

# --------- I/O ---------
ID_COL = "ID"                 # sample identifier column; None-style lookups fall back to the first column

# --------- Feature filtering ---------
DATASET_THRESHOLD = 0.10      # fraction of samples a feature must be abundant in
SAMPLE_THRESHOLD  = 0.0001    # relative abundance that counts as "present" (0.01%)

# --------- Random forest ---------
N_TREES     = 1001            # odd number to resolve tie votes
CV_FOLDS    = 10
GRID_SIZE   = 10              # candidate (mtry, min_n) pairs per metabolite
MIN_N_RANGE = (2, 40)         # min_samples_split search range
RANDOM_SEED = 123

# --------- Statistics ---------
ALPHA      = 0.05
FDR_METHOD = "fdr_bh"
CORR_METHOD = "spearman"      # "spearman" | "pearson"

# Misc
OUTDIR = Path("results")
