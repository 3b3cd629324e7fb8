"""Jinja2 filters used by the report templates."""

from repolyzer.renderers.filters import escape_table_cell, format_percent, pluralize

__all__ = ["escape_table_cell", "format_percent", "pluralize"]
