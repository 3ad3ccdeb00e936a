"""
API module for graph_workloads.

This module contains the HTTP action surface: it maps requests onto the
core facade and renders records or Adaptive Cards.
"""

from .app import app_factory

__all__ = ["app_factory"]
