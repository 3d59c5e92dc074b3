"""Line selection state."""

from linestage.selection.state import SelectionError, SelectionKey, SelectionState

__all__ = ["SelectionError", "SelectionKey", "SelectionState"]
