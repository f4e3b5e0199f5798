"""Human-readable labels for axes, captions and control choices.

Every mapping here is total over its enum: each member has exactly one
label, so lookups never fall through to a default.
"""

from __future__ import annotations

from typing import Dict

from .models import ColorFactor, EffectVar, Framework, Predictor, ScatterColorFactor


FOREST_Y_LABEL = "Posterior effect size"

FOREST_CAPTION = (
    "Posterior estimates from meta-analytic model (color),\n"
    "and raw estimates extracted from teams' models (grey)\n"
)

FRAMEWORK_X_LABELS: Dict[Framework, str] = {
    Framework.ANY: "All models",
    Framework.FREQUENTIST: "Frequentist models",
    Framework.BAYESIAN: "Bayesian models",
}

EFFECT_LABELS: Dict[EffectVar, str] = {
    EffectVar.POST_MEAN: "Meta-analytic effect",
    EffectVar.ESTIMATE: "Submitted effect",
}

# Axis titles wrap the peer ratings over two lines
PREDICTOR_AXIS_LABELS: Dict[Predictor, str] = {
    Predictor.YEARS_FROM_PHD: "Years after PhD",
    Predictor.PRIOR_BELIEF: "Prior belief",
    Predictor.PHON_RATING: "Peer rating\n(acoustic analysis)",
    Predictor.STAT_RATING: "Peer rating\n(statistical analysis)",
    Predictor.ALL_RATING: "Peer rating\n(overall)",
}

PREDICTOR_CHOICE_LABELS: Dict[Predictor, str] = {
    predictor: label.replace("\n", " ") for predictor, label in PREDICTOR_AXIS_LABELS.items()
}

FACTOR_LABELS: Dict[ColorFactor, str] = {
    ColorFactor.OUTCOME: "Outcome measure",
    ColorFactor.TEMPORAL_WINDOW: "Temporal window",
    ColorFactor.OPERATIONALISATION: "Operationalization",
    ColorFactor.TYPICALITY: "Typicality",
    ColorFactor.FOUND_EFFECT: "Found effect?",
}

SCATTER_FACTOR_LABELS: Dict[ScatterColorFactor, str] = {
    ScatterColorFactor.NONE: "None",
    **{ScatterColorFactor(factor.value): label for factor, label in FACTOR_LABELS.items()},
}


def x_label(framework: Framework) -> str:
    """Forest plot x-axis label for the selected framework."""
    return FRAMEWORK_X_LABELS[Framework(framework)]


def scatter_y_label(y_var: EffectVar) -> str:
    return EFFECT_LABELS[EffectVar(y_var)]


def scatter_x_label(x_var: Predictor) -> str:
    return PREDICTOR_AXIS_LABELS[Predictor(x_var)]
