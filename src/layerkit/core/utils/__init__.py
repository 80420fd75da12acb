"""Shared helpers: merging, file I/O, glob patterns, and subprocess execution."""
