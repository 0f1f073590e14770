"""
Committed shape list with undo/redo.

The committed list doubles as the undo stack. Popped shapes go onto a redo
stack that any new commit or clear throws away. Every real change bumps a
version token that preview caches compare against; no-ops leave it alone.
"""

from typing import List, Optional, Sequence

from shotmark.editor.shapes import CircleCountShape, Shape
from shotmark.services.logging_service import get_logger

_VERSION_MASK = (1 << 64) - 1


class ShapeHistory:
    """Ordered annotation list (insertion order is z-order) plus redo stack."""

    def __init__(self) -> None:
        self._logger = get_logger(__name__)
        self._shapes: List[Shape] = []
        self._redo: List[Shape] = []
        self._version = 0

    @property
    def shapes(self) -> Sequence[Shape]:
        return tuple(self._shapes)

    @property
    def version(self) -> int:
        return self._version

    @property
    def can_undo(self) -> bool:
        return bool(self._shapes)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def __len__(self) -> int:
        return len(self._shapes)

    def _bump(self) -> None:
        # Only equality is ever tested, so wrapping is harmless
        self._version = (self._version + 1) & _VERSION_MASK

    def commit(self, shape: Shape) -> None:
        self._shapes.append(shape)
        self._redo.clear()
        self._bump()
        self._logger.debug(f"Committed {type(shape).__name__} (total {len(self._shapes)})")

    def undo(self) -> Optional[Shape]:
        """Move the last shape onto the redo stack; returns it, or None if empty."""
        if not self._shapes:
            return None
        shape = self._shapes.pop()
        self._redo.append(shape)
        self._bump()
        return shape

    def redo(self) -> Optional[Shape]:
        """Restore the most recently undone shape; returns it, or None."""
        if not self._redo:
            return None
        shape = self._redo.pop()
        self._shapes.append(shape)
        self._bump()
        return shape

    def clear(self) -> bool:
        """Drop every shape and the redo stack. Returns False if already empty."""
        if not self._shapes:
            return False
        self._shapes.clear()
        self._redo.clear()
        self._bump()
        return True

    def next_circle_count(self) -> int:
        """One more than the highest CircleCount label currently committed."""
        counts = [s.count for s in self._shapes if isinstance(s, CircleCountShape)]
        return max(counts, default=0) + 1
