from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

from retail_pos.domain.state import AppState


class UnitOfWork(Protocol):
    state: AppState

    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...


@dataclass
class StateUnitOfWork:
    """Single-writer transaction over ``AppState``.

    The outermost unit of work snapshots the state on entry, restores it if
    the block raises and persists it otherwise. Nested units join the
    outermost one.
    """

    state: AppState
    repo: Optional[object] = None
    _snapshot: Optional[AppState] = field(default=None, init=False, repr=False)

    def __enter__(self) -> "StateUnitOfWork":
        if self.state.tx_depth == 0:
            self._snapshot = self.state.snapshot()
        self.state.tx_depth += 1
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.state.tx_depth -= 1
        if self._snapshot is None:
            return None
        snapshot, self._snapshot = self._snapshot, None
        if exc_type is not None:
            self.state.restore(snapshot)
            return None
        if self.repo is not None:
            self.repo.save(self.state)
        return None
