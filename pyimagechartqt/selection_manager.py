"""Selection state and click handling for the chart's bars.

This module keeps the set of selected bars for one visual instance and turns
clicks into selection requests:

  - Clicking a bar selects only that bar (single select).
  - Clicking the sole selected bar again clears the selection.
  - Clicking the background clears the selection.
  - Bar clicks stop the event so the background handler never sees them.

The host confirms every request asynchronously. The coordinator applies the
confirmed keys only once the confirmation resolves; until then the previous
state (and the opacities derived from it) stays in place.

Example usage:

    coordinator = SelectionCoordinator(ImmediateSelectionService())
    coordinator.add_listener(lambda state: surface.refresh_opacity())

    event = ClickEvent()
    coordinator.on_point_click(key, event)
    coordinator.on_background_click(event)   # ignored, propagation stopped

    coordinator.opacity(key)                 # 1.0 (selected)
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Protocol, Sequence

from .models import SelectionKey

logger = logging.getLogger(__name__)

SOLID_OPACITY = 1.0
TRANSPARENT_OPACITY = 0.5

Listener = Callable[["SelectionState"], None]


@dataclass(frozen=True)
class SelectionState:
    """Immutable set of selected keys. Empty means Unselected."""

    keys: FrozenSet[SelectionKey] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.keys

    def is_selected(self, key: SelectionKey) -> bool:
        return key in self.keys


UNSELECTED = SelectionState()


def next_selection(state: SelectionState, clicked: SelectionKey) -> SelectionState:
    """Selection after clicking ``clicked`` (single select, toggle-off)."""
    if state.keys == frozenset((clicked,)):
        return UNSELECTED
    return SelectionState(frozenset((clicked,)))


def opacity_for(
    state: SelectionState,
    key: SelectionKey,
    solid: float = SOLID_OPACITY,
    transparent: float = TRANSPARENT_OPACITY,
) -> float:
    """Dim bars outside a non-empty selection; everything is solid otherwise."""
    if state.is_empty or key in state.keys:
        return solid
    return transparent


@dataclass
class ClickEvent:
    """One pointer gesture, dispatched to the bar handler then the background."""

    x: float = 0.0
    y: float = 0.0
    propagation_stopped: bool = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


class SelectionService(Protocol):
    """Host selection confirmation.

    ``select`` returns a future resolving to the keys the host considers
    active after the request.
    """

    def select(self, keys: Sequence[SelectionKey]) -> "Future[List[SelectionKey]]":
        ...


class ImmediateSelectionService:
    """Confirms every request synchronously with the requested keys."""

    def select(self, keys: Sequence[SelectionKey]) -> "Future[List[SelectionKey]]":
        future: Future = Future()
        future.set_result(list(keys))
        return future


@dataclass
class _PendingRequest:
    generation: int
    requested: SelectionState
    future: Future = field(repr=False)


class SelectionCoordinator:
    """Owns the selection state of one visual instance.

    The state is replaced wholesale whenever a confirmation resolves and the
    registered listeners are notified with the new state. Opacity is derived
    from the current state on demand and is never stored.
    """

    def __init__(
        self,
        service: Optional[SelectionService] = None,
        allow_interactions: bool = True,
        solid_opacity: float = SOLID_OPACITY,
        transparent_opacity: float = TRANSPARENT_OPACITY,
    ) -> None:
        self._service = service if service is not None else ImmediateSelectionService()
        self.allow_interactions = allow_interactions
        self.solid_opacity = solid_opacity
        self.transparent_opacity = transparent_opacity

        self._state = UNSELECTED
        self._listeners: List[Listener] = []
        self._generation = 0
        self._pending: Optional[_PendingRequest] = None
        self._disposed = False

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def selected_keys(self) -> FrozenSet[SelectionKey]:
        return self._state.keys

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.future.done()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def on_point_click(self, key: SelectionKey, event: Optional[ClickEvent] = None) -> None:
        """Handle a click on a bar."""
        if not self.allow_interactions or self._disposed:
            return
        self._request(next_selection(self._base_state(), key))
        if event is not None:
            event.stop_propagation()

    def on_background_click(self, event: Optional[ClickEvent] = None) -> None:
        """Handle a click outside every bar."""
        if self._disposed or (event is not None and event.propagation_stopped):
            return
        self._request(UNSELECTED)

    def select_keys(self, keys: Iterable[SelectionKey]) -> None:
        """Programmatic selection (e.g. syncing from another view)."""
        if self._disposed:
            return
        self._request(SelectionState(frozenset(keys)))

    def reset(self) -> None:
        """Drop any pending request and return to Unselected locally."""
        self._generation += 1
        self._pending = None
        self._set_state(UNSELECTED)

    def dispose(self) -> None:
        if self.has_pending:
            logger.warning("Disposing with an unconfirmed selection request; it will be ignored")
        self._disposed = True
        self._generation += 1
        self._pending = None
        self._listeners.clear()

    def opacity(self, key: SelectionKey) -> float:
        return opacity_for(self._state, key, self.solid_opacity, self.transparent_opacity)

    def opacities(self, keys: Iterable[SelectionKey]) -> Dict[SelectionKey, float]:
        state = self._state
        return {
            key: opacity_for(state, key, self.solid_opacity, self.transparent_opacity)
            for key in keys
        }

    def _base_state(self) -> SelectionState:
        # Toggle against what was last requested so quick double clicks behave
        if self.has_pending:
            return self._pending.requested
        return self._state

    def _request(self, requested: SelectionState) -> None:
        if self.has_pending:
            logger.warning(
                "Selection confirmation still pending; keeping previous opacities until the newer request resolves"
            )
        self._generation += 1
        generation = self._generation
        future = self._service.select(sorted(requested.keys, key=repr))
        self._pending = _PendingRequest(generation, requested, future)
        future.add_done_callback(lambda f: self._on_confirmed(generation, f))

    def _on_confirmed(self, generation: int, future: Future) -> None:
        if generation != self._generation:
            logger.debug("Dropping stale selection confirmation (generation %d)", generation)
            return
        self._pending = None
        if future.cancelled():
            logger.warning("Selection confirmation was cancelled; keeping previous selection")
            return
        error = future.exception()
        if error is not None:
            logger.warning("Selection confirmation failed: %s; keeping previous selection", error)
            return
        self._set_state(SelectionState(frozenset(future.result() or ())))

    def _set_state(self, state: SelectionState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)
