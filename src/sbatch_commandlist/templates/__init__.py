"""Job script template rendering."""

from .engine import render_template

__all__ = ["render_template"]
