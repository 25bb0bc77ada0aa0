"""Scenic Route: scenic variants of A-to-B routes within a travel-time budget."""

__version__ = "0.1.0"
