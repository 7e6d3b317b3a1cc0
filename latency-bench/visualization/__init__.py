"""
Report rendering for benchmark results.
"""

from .report import render_summary, format_seconds

__all__ = ['render_summary', 'format_seconds']
