"""Artifact output."""

from .writer import write_composite, write_split, split_file_names

__all__ = ["write_composite", "write_split", "split_file_names"]
