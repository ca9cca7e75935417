"""Prism: GitHub pull requests in the menu bar."""

__version__ = "0.1.0"
