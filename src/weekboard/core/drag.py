"""
Drag transition controller.

Turns pointer-collision events into board intents. A drag is a small state
machine:

    IDLE --start--> DRAGGING --over--> DRAGGING --end--> RESOLVING --> IDLE

Cross-column moves are applied optimistically while the pointer is still
moving; same-column reorders are applied once, on drop. There is no rollback.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

from .ordering import partition
from .tasks import COLUMNS, Status, Task

logger = logging.getLogger(__name__)

_COLUMN_IDS = {status.value: status for status in COLUMNS}


class DragState(Enum):
    IDLE = auto()
    DRAGGING = auto()
    RESOLVING = auto()


class MoveTarget(Protocol):
    """What the controller needs from the board."""

    def get_task(self, task_id: str) -> Task | None:
        ...

    def tasks(self) -> list[Task]:
        ...

    def move_task(self, task_id: str, to_status: Status, to_index: int) -> bool:
        ...

    def reorder_task(self, task_id: str, to_index: int) -> bool:
        ...


@dataclass(frozen=True)
class Move:
    """A cross-column placement applied during a drag."""

    task_id: str
    to_status: Status
    to_index: int


@dataclass
class DragSession:
    """One active drag. Lives only between start and end."""

    task_id: str
    origin_status: Status
    last_move: Move | None = None


def column_for_id(target_id: str) -> Status | None:
    """Status for a column drop target id, or None for a card id."""
    return _COLUMN_IDS.get(target_id)


def resolve_collision(collisions: Sequence[str]) -> str | None:
    """
    Pick the drop target under the pointer.

    Cards win over columns so a sparse column still yields a precise index;
    the column is used only when no card is hit.
    """
    cards = [c for c in collisions if column_for_id(c) is None]
    if cards:
        return cards[0]
    columns = [c for c in collisions if column_for_id(c) is not None]
    if columns:
        return columns[0]
    return None


class DragController:
    """Applies drag gestures to a board."""

    def __init__(self, board: MoveTarget):
        self.board = board
        self.state = DragState.IDLE
        self.session: DragSession | None = None

    def _status_for_target(self, target_id: str) -> Status | None:
        column = column_for_id(target_id)
        if column is not None:
            return column
        task = self.board.get_task(target_id)
        return task.status if task else None

    def start(self, task_id: str) -> bool:
        """Begin dragging a task. Returns False for an unknown task."""
        task = self.board.get_task(task_id)
        if task is None:
            logger.warning(f"Drag start on unknown task {task_id}; ignoring")
            return False
        self.session = DragSession(task_id=task_id, origin_status=task.status)
        self.state = DragState.DRAGGING
        logger.debug(f"Drag started: {task_id} from {task.status.value}")
        return True

    def over(self, collisions: Sequence[str]) -> Move | None:
        """
        Pointer moved over drop targets.

        Applies a cross-column move immediately and returns it; returns None
        when nothing changed (same column, no target, or a repeat of the
        last applied move).
        """
        if self.state is not DragState.DRAGGING or self.session is None:
            return None

        target_id = resolve_collision(collisions)
        if target_id is None:
            return None

        active = self.board.get_task(self.session.task_id)
        if active is None:
            logger.warning(f"Dragged task {self.session.task_id} disappeared mid-drag")
            return None

        to_status = self._status_for_target(target_id)
        if to_status is None or to_status is active.status:
            return None

        destination = partition(self.board.tasks(), to_status, exclude_id=active.id)
        to_index = len(destination)
        if column_for_id(target_id) is None:
            for index, task in enumerate(destination):
                if task.id == target_id:
                    to_index = index
                    break

        move = Move(task_id=active.id, to_status=to_status, to_index=to_index)
        if move == self.session.last_move:
            return None

        self.session.last_move = move
        self.board.move_task(move.task_id, move.to_status, move.to_index)
        return move

    def end(self, collisions: Sequence[str]) -> bool:
        """
        Drop. Returns True if a same-column reorder was applied.

        Cross-column placement already happened during over(); dropping
        without a target leaves the task where the last move put it.
        """
        if self.state is not DragState.DRAGGING or self.session is None:
            return False

        self.state = DragState.RESOLVING
        session = self.session
        try:
            return self._resolve_drop(session, resolve_collision(collisions))
        finally:
            self.session = None
            self.state = DragState.IDLE

    def _resolve_drop(self, session: DragSession, target_id: str | None) -> bool:
        if target_id is None or target_id == session.task_id:
            return False

        active = self.board.get_task(session.task_id)
        target = self.board.get_task(target_id)
        if active is None or target is None or target.status is not active.status:
            return False

        column = partition(self.board.tasks(), active.status)
        old_index = next(i for i, t in enumerate(column) if t.id == active.id)
        new_index = next(i for i, t in enumerate(column) if t.id == target.id)
        if old_index == new_index:
            return False

        return self.board.reorder_task(active.id, new_index)

    def cancel(self) -> None:
        """Abandon the drag; moves already applied stay applied."""
        self.session = None
        self.state = DragState.IDLE
