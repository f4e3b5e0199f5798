"""API routes for the dashboard.

This module exposes the control surface (choices and defaults), per-session
selection state, control events and the two chart outputs, either as chart
specs (JSON) or rendered images.  Handlers are ``async`` and only the
image route awaits, handing matplotlib drawing to the threadpool, so each
event is applied and its outputs rebuilt before the next request is
served.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from ..charts.builder import POST_PLOT, SCATTER_PLOT, build_forest_chart, build_scatter_chart
from ..charts.render import render_chart
from ..charts.spec import ChartSpec
from ..core.labels import EFFECT_LABELS, FACTOR_LABELS, PREDICTOR_CHOICE_LABELS, SCATTER_FACTOR_LABELS
from ..core.models import ColorFactor, ControlEvent, ControlId, Framework, SelectionState
from ..io.dataset import Dataset
from ..session.state import SelectionError, SessionNotFoundError, SessionStore, initial_state
from ..views.derive import available_categories, derive_forest, derive_scatter
from ..utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api")

OUTPUT_IDS = (POST_PLOT, SCATTER_PLOT)


def get_dataset(request: Request) -> Dataset:
    return request.app.state.dataset


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def _choices(labels: Dict[Any, str]) -> List[Dict[str, str]]:
    return [{"value": key.value, "label": label} for key, label in labels.items()]


def _session_payload(session_id: str, state: SelectionState, dataset: Dataset) -> Dict[str, object]:
    return {
        "session_id": session_id,
        "state": state.model_dump(mode="json"),
        "checkbox_choices": available_categories(dataset, state.color_factor),
    }


def build_output(dataset: Dataset, state: SelectionState, output_id: str) -> ChartSpec:
    """Derive the view for ``output_id`` and assemble its chart spec."""
    if output_id == POST_PLOT:
        view = derive_forest(dataset, state)
        return build_forest_chart(view, state.include_submitted, state.hide_intervals)
    if output_id == SCATTER_PLOT:
        return build_scatter_chart(derive_scatter(dataset, state), state.add_regression)
    raise HTTPException(status_code=404, detail=f"Unknown output: {output_id}")


def _state_or_404(sessions: SessionStore, session_id: str) -> SelectionState:
    try:
        return sessions.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found") from None


@router.get("/health")
async def health(dataset: Dataset = Depends(get_dataset)) -> Dict[str, object]:
    """Liveness check reporting the number of loaded models."""
    return {"status": "ok", "rows": len(dataset)}


@router.get("/controls")
async def list_controls(dataset: Dataset = Depends(get_dataset)) -> Dict[str, object]:
    """Describe every control: its choices and default value."""
    defaults = initial_state(dataset)
    return {
        ControlId.COLOR.value: {
            "label": "Choose a factor:",
            "choices": _choices(FACTOR_LABELS),
            "default": defaults.color_factor.value,
        },
        ControlId.FRAMEWORK.value: {
            "label": "Inferential framework:",
            "choices": [{"value": f.value, "label": f.value} for f in Framework],
            "default": defaults.framework.value,
        },
        ControlId.INCLUDE_SUBMITTED.value: {"label": "Plot submitted effect", "default": defaults.include_submitted},
        ControlId.HIDE_INTERVALS.value: {"label": "Hide CIs", "default": defaults.hide_intervals},
        ControlId.CHECKBOX.value: {
            "label": None,
            "choices": [{"value": c, "label": c} for c in defaults.active_categories],
            "default": defaults.active_categories,
        },
        ControlId.SP_Y_VAR.value: {
            "label": "Choose effect",
            "choices": _choices(EFFECT_LABELS),
            "default": defaults.scatter_y_var.value,
        },
        ControlId.SP_X_VAR.value: {
            "label": "Choose x variable",
            "choices": _choices(PREDICTOR_CHOICE_LABELS),
            "default": defaults.scatter_x_var.value,
        },
        ControlId.SP_COLOR_VAR.value: {
            "label": "Choose factor",
            "choices": _choices(SCATTER_FACTOR_LABELS),
            "default": defaults.scatter_color_factor.value,
        },
        ControlId.STD_VARS.value: {"label": "Standardize predictor", "default": defaults.standardize_x},
        ControlId.ADD_REGRESSION.value: {"label": "Add regression line", "default": defaults.add_regression},
    }


@router.get("/categories/{factor}")
async def get_categories(factor: ColorFactor, dataset: Dataset = Depends(get_dataset)) -> List[str]:
    """Checkbox choices for a color factor."""
    return available_categories(dataset, factor)


@router.post("/sessions")
async def create_session(
    sessions: SessionStore = Depends(get_sessions),
) -> Dict[str, object]:
    """Start a session with default selections."""
    session_id = sessions.create()
    return _session_payload(session_id, sessions.get(session_id), sessions.dataset)


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    sessions: SessionStore = Depends(get_sessions),
) -> Dict[str, object]:
    state = _state_or_404(sessions, session_id)
    return _session_payload(session_id, state, sessions.dataset)


@router.delete("/sessions/{session_id}")
async def delete_session(
    session_id: str,
    sessions: SessionStore = Depends(get_sessions),
) -> Dict[str, str]:
    try:
        sessions.delete(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found") from None
    return {"session_id": session_id, "status": "closed"}


@router.post("/sessions/{session_id}/events")
async def post_event(
    session_id: str,
    event: ControlEvent,
    sessions: SessionStore = Depends(get_sessions),
) -> Dict[str, object]:
    """Apply a control change and return the updated selection."""
    _state_or_404(sessions, session_id)
    try:
        state = sessions.dispatch(session_id, event)
    except SelectionError as e:
        logger.warning(f"Rejected event for session {session_id}: {e}")
        raise HTTPException(status_code=422, detail=str(e)) from e
    return _session_payload(session_id, state, sessions.dataset)


@router.get("/sessions/{session_id}/outputs/{output_id}")
async def get_output(
    session_id: str,
    output_id: str,
    sessions: SessionStore = Depends(get_sessions),
) -> Dict[str, object]:
    """Chart spec for ``postPlot`` or ``scatterPlot``."""
    state = _state_or_404(sessions, session_id)
    spec = build_output(sessions.dataset, state, output_id)
    return spec.model_dump(mode="json")


@router.get("/sessions/{session_id}/outputs/{output_id}/image")
async def get_output_image(
    session_id: str,
    output_id: str,
    sessions: SessionStore = Depends(get_sessions),
) -> Response:
    """Rendered PNG of an output.

    Drawing runs in the threadpool; the session is read on the event loop.
    """
    state = _state_or_404(sessions, session_id)
    spec = build_output(sessions.dataset, state, output_id)
    image = await run_in_threadpool(render_chart, spec, fmt="png")
    return Response(content=image, media_type="image/png")
