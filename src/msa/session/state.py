"""Per-session selection state.

Each browser session owns one :class:`~msa.core.models.SelectionState`.
Control events replace it with a new state; nothing is persisted beyond
the session.  The dataset is shared by all sessions and only read.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from ..config.settings import settings
from ..core.models import (
    ColorFactor,
    ControlEvent,
    ControlId,
    EffectVar,
    Framework,
    Predictor,
    ScatterColorFactor,
    SelectionState,
)
from ..io.dataset import Dataset
from ..views.derive import available_categories
from ..utils.logging import get_logger

logger = get_logger(__name__)


class SelectionError(Exception):
    """Base class for rejected control events."""


class UnknownControlError(SelectionError):
    """The event names a control the dashboard does not have."""


class InvalidControlValueError(SelectionError):
    """The event value is outside the control's domain."""


class SessionNotFoundError(KeyError):
    """No session is registered under the given id."""


_bool = TypeAdapter(bool)
_str_list = TypeAdapter(List[str])

# control id -> (SelectionState field, value parser)
CONTROL_FIELDS: Dict[ControlId, Tuple[str, Callable[[Any], Any]]] = {
    ControlId.COLOR: ("color_factor", ColorFactor),
    ControlId.FRAMEWORK: ("framework", Framework),
    ControlId.INCLUDE_SUBMITTED: ("include_submitted", _bool.validate_python),
    ControlId.HIDE_INTERVALS: ("hide_intervals", _bool.validate_python),
    ControlId.CHECKBOX: ("active_categories", lambda v: _str_list.validate_python(v or [])),
    ControlId.SP_Y_VAR: ("scatter_y_var", EffectVar),
    ControlId.SP_X_VAR: ("scatter_x_var", Predictor),
    ControlId.SP_COLOR_VAR: ("scatter_color_factor", ScatterColorFactor),
    ControlId.STD_VARS: ("standardize_x", _bool.validate_python),
    ControlId.ADD_REGRESSION: ("add_regression", _bool.validate_python),
}


def initial_state(dataset: Dataset) -> SelectionState:
    """Defaults for a new session, with every category of the default factor checked."""
    state = SelectionState()
    return state.model_copy(
        update={"active_categories": available_categories(dataset, state.color_factor)}
    )


def apply_event(dataset: Dataset, state: SelectionState, event: ControlEvent) -> SelectionState:
    """Return the state that results from one control event.

    Changing ``color`` checks every category of the new factor, discarding
    any earlier de-selection.  Checkbox values the current factor does not
    have are dropped.

    Raises:
        UnknownControlError: if ``event.control_id`` is not a control.
        InvalidControlValueError: if the value is outside the domain.
    """
    try:
        control = ControlId(event.control_id)
    except ValueError as e:
        raise UnknownControlError(f"Unknown control: {event.control_id!r}") from e
    field_name, parse = CONTROL_FIELDS[control]
    try:
        value = parse(event.value)
    except (ValueError, ValidationError) as e:
        raise InvalidControlValueError(f"Invalid value for {control.value}: {event.value!r}") from e

    update: Dict[str, Any] = {field_name: value}
    if control is ControlId.COLOR and value != state.color_factor:
        update["active_categories"] = available_categories(dataset, value)
    elif control is ControlId.CHECKBOX:
        allowed = set(available_categories(dataset, state.color_factor))
        dropped = sorted(set(value) - allowed)
        if dropped:
            logger.warning(f"Ignoring unknown {state.color_factor.value} categories: {', '.join(dropped)}")
        update[field_name] = sorted(set(value) & allowed)
    # model_copy skips validation, so keep the sorted-set invariant here
    if "active_categories" in update:
        update["active_categories"] = sorted(set(update["active_categories"]))
    return state.model_copy(update=update)


class SessionStore:
    """In-memory registry of session states keyed by session id.

    A session that is neither read nor updated for ``ttl`` seconds is
    discarded, the way a dashboard session ends when its client goes
    away.  Expired sessions are pruned whenever a session is created and
    are treated as unknown on access.
    """

    def __init__(
        self,
        dataset: Dataset,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.dataset = dataset
        self.ttl = settings.session_ttl if ttl is None else ttl
        self._clock = clock
        self._states: Dict[str, SelectionState] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._states and not self._expired(session_id)

    def _expired(self, session_id: str) -> bool:
        return self._clock() - self._last_seen[session_id] > self.ttl

    def _forget(self, session_id: str) -> None:
        self._states.pop(session_id, None)
        self._last_seen.pop(session_id, None)

    def prune(self) -> int:
        """Drop every expired session and return how many were removed."""
        expired = [sid for sid in self._states if self._expired(sid)]
        for session_id in expired:
            self._forget(session_id)
        if expired:
            logger.info(f"Expired {len(expired)} idle sessions")
        return len(expired)

    def create(self) -> str:
        self.prune()
        session_id = uuid.uuid4().hex
        self._states[session_id] = initial_state(self.dataset)
        self._last_seen[session_id] = self._clock()
        logger.info(f"Created session {session_id}")
        return session_id

    def get(self, session_id: str) -> SelectionState:
        if session_id not in self._states:
            raise SessionNotFoundError(session_id)
        if self._expired(session_id):
            self._forget(session_id)
            logger.info(f"Session {session_id} expired")
            raise SessionNotFoundError(session_id)
        self._last_seen[session_id] = self._clock()
        return self._states[session_id]

    def dispatch(self, session_id: str, event: ControlEvent) -> SelectionState:
        """Apply ``event`` to a session and store the resulting state."""
        state = apply_event(self.dataset, self.get(session_id), event)
        self._states[session_id] = state
        logger.debug(f"Session {session_id}: {event.control_id}={event.value!r}")
        return state

    def delete(self, session_id: str) -> None:
        if session_id not in self._states:
            raise SessionNotFoundError(session_id)
        self._forget(session_id)
        logger.info(f"Closed session {session_id}")
