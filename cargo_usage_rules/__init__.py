"""Aggregate usage-rules.md files from Rust dependencies into one document."""

__version__ = "0.1.0"
