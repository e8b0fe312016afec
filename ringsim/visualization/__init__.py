"""Visualization tools for orchestrated runs"""

from .diagnostics import DiagnosticPlotter

__all__ = [
    'DiagnosticPlotter'
]
