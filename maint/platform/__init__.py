"""Thin wrappers over the operating system: processes and files."""

from .files import atomic_write_text, load_document, write_document
from .process import ProcessError, run

__all__ = [
    "ProcessError",
    "atomic_write_text",
    "load_document",
    "run",
    "write_document",
]
