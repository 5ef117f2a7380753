"""Reporting Module - flat output tables, run metadata and plots."""

from .writer import create_run_metadata, write_outputs

__all__ = [
    "create_run_metadata",
    "write_outputs",
]
