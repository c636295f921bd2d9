"""Console helpers for the command line entry point."""

from .console import console, fail, header, make_summary_table, ok, print_summary

__all__ = [
    "console",
    "fail",
    "header",
    "make_summary_table",
    "ok",
    "print_summary",
]
