"""
Ledger text syntax: scanner, positioned syntax tree, parser and printer.
"""

from __future__ import annotations

from . import nodes
from .parser import Parser, parse
from .printer import Printer, format_file
from .scanner import EOF, Scanner

__all__ = [
    "EOF",
    "Scanner",
    "Parser",
    "parse",
    "Printer",
    "format_file",
    "nodes",
]
