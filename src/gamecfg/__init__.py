"""Game configuration editor: change history, undo/redo and checkpoints."""

__version__ = "0.1.0"
