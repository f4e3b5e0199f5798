"""Core domain models: control domains, selection state and events."""

from __future__ import annotations

from enum import Enum
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ColorFactor(str, Enum):
    """Categorical covariates a forest plot can be colored by."""

    OUTCOME = "outcome"
    TEMPORAL_WINDOW = "temporal_window"
    OPERATIONALISATION = "operationalisation"
    TYPICALITY = "typicality"
    FOUND_EFFECT = "found_effect"


class ScatterColorFactor(str, Enum):
    """Color factor choices for the scatterplot, including no coloring."""

    NONE = "none"
    OUTCOME = "outcome"
    TEMPORAL_WINDOW = "temporal_window"
    OPERATIONALISATION = "operationalisation"
    TYPICALITY = "typicality"
    FOUND_EFFECT = "found_effect"

    @property
    def factor(self) -> ColorFactor | None:
        """The matching :class:`ColorFactor`, or ``None`` for no coloring."""
        if self is ScatterColorFactor.NONE:
            return None
        return ColorFactor(self.value)


class Framework(str, Enum):
    """Inferential framework filter for the forest plot."""

    ANY = "Any"
    FREQUENTIST = "Frequentist"
    BAYESIAN = "Bayesian"


class EffectVar(str, Enum):
    """Effect size plotted on the scatterplot y axis."""

    POST_MEAN = "post_mean"
    ESTIMATE = "estimate"


class Predictor(str, Enum):
    """Continuous covariates plotted on the scatterplot x axis."""

    YEARS_FROM_PHD = "years_from_phd"
    PRIOR_BELIEF = "prior_belief"
    PHON_RATING = "phon_rating"
    STAT_RATING = "stat_rating"
    ALL_RATING = "all_rating"


class ControlId(str, Enum):
    """Identifiers of the dashboard's input controls."""

    COLOR = "color"
    FRAMEWORK = "framework"
    INCLUDE_SUBMITTED = "include_submitted"
    HIDE_INTERVALS = "hide_intervals"
    CHECKBOX = "checkbox"
    SP_Y_VAR = "sp_y_var"
    SP_X_VAR = "sp_x_var"
    SP_COLOR_VAR = "sp_color_var"
    STD_VARS = "std_vars"
    ADD_REGRESSION = "add_regression"


class SelectionState(BaseModel):
    """Current value of every dashboard control for one session.

    Instances are frozen; control events produce a new state via
    :func:`msa.session.state.apply_event`.
    """

    model_config = ConfigDict(frozen=True)

    # Forest plot controls
    color_factor: ColorFactor = ColorFactor.OUTCOME
    framework: Framework = Framework.ANY
    include_submitted: bool = True
    hide_intervals: bool = False
    active_categories: List[str] = Field(default_factory=list)

    # Scatterplot controls
    scatter_y_var: EffectVar = EffectVar.POST_MEAN
    scatter_x_var: Predictor = Predictor.YEARS_FROM_PHD
    scatter_color_factor: ScatterColorFactor = ScatterColorFactor.NONE
    standardize_x: bool = False
    add_regression: bool = False

    @field_validator("active_categories")
    @classmethod
    def _sorted_unique(cls, v: List[str]) -> List[str]:
        """Store the checkbox selection as a sorted set."""
        return sorted({str(item) for item in v})


class ControlEvent(BaseModel):
    """A ``(controlId, newValue)`` pair emitted by the presentation shell."""

    control_id: str = Field(..., description="One of the ControlId values")
    value: Any = None


class VisualParams(BaseModel):
    """Marker and line sizes derived from the number of plotted rows.

    Values are not clamped and may be negative for very large views.
    """

    model_config = ConfigDict(frozen=True)

    point_size: float
    line_size: float
    stroke_size: float
