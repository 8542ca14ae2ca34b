"""Bayesian A/B comparisons with conjugate priors and Monte Carlo posteriors."""

__version__ = "0.1.0"
