"""Musik M-O: a file-backed song catalog with uploads and a browser player."""

__version__ = "1.0.0"
