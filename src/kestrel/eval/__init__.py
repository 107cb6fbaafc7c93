"""Evaluator helper modules for the Kestrel runtime."""

__all__ = [
    "bind",
    "blocks",
    "common",
    "expr",
    "helpers",
    "loops",
]
