"""Command-line interface for notesync."""
