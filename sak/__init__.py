"""Everyday helpers for hashing, file system work, cookies and HTTP downloads."""

__version__ = "0.1.0"