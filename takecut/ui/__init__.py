"""PySide6 user interface."""

from .editor_window import EditorWindow

__all__ = ["EditorWindow"]
