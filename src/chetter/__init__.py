"""Chetter: pull request ref bookkeeping for GitHub."""

__version__ = "0.3.0"
