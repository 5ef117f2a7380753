"""Data Module - CMS file loading and synthetic cohorts."""

from .loader import load_all_data, read_cohort
from .sample import generate_raw_files, generate_sample_cohort, write_raw_files

__all__ = [
    "load_all_data",
    "read_cohort",
    "generate_raw_files",
    "generate_sample_cohort",
    "write_raw_files",
]
