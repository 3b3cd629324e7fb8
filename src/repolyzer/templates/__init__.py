"""Repolyzer report rendering.

Jinja2-based Markdown rendering and JSON export of analysis results.
"""

from repolyzer.templates.renderer import ReportRenderer

__all__ = ["ReportRenderer"]
