"""Predict metabolite abundances from microbial gene-function profiles with swap-validated random forests."""
from .preprocess import relative_abundance, abundance_filter, log_autoscale
from .matching import match_samples, subset_to_samples, shared_targets
from .differential import differential_abundance, differential_table
from .modeling import rf_fit_predict
from .evaluation import prediction_correlations, differential_f1

__version__ = "0.1.0"
