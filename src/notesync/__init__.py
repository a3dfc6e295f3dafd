"""notesync - mirror a markdown vault into a SQLite index."""

__version__ = "1.0.0"
