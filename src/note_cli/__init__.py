"""
note-cli - a personal note-taking command-line tool.
Notes live in a remote relational database and are scoped per user. A
one-time migration imports notes from the legacy local JSON file store.

This version uses synchronous operations.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("note-cli")
except PackageNotFoundError:
    __version__ = "2.0.0"
