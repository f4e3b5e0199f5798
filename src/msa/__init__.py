"""Interactive dashboard for the Many Speech Analyses meta-analytic results.

The package loads a precomputed table of per-model effect-size estimates
and derives two chart outputs from a small set of user selections: a
forest plot of posterior estimates and a scatterplot of effect size
against team-level predictors.
"""

__version__ = "0.1.0"
