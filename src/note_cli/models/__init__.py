"""Data models for note-cli."""
