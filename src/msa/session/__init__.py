"""Per-session selection state and control events."""

from .state import SessionStore, apply_event, initial_state  # noqa: F401
