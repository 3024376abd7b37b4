"""Folgezettel addresses and link maintenance for markdown note collections."""

__version__ = "0.1.0"
