"""Ivy module descriptor rendering."""

from descriptor.ivy import render_ivy_module

__all__ = ["render_ivy_module"]
