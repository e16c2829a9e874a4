"""Local web viewer for note-cli."""
