"""Test fakes for notesync."""

from .executor import ModuleExecutor, split_statements

__all__ = ["ModuleExecutor", "split_statements"]
