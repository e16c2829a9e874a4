"""Service layer for note-cli."""
