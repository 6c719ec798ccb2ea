"""
LedgerLab - Plain-Text Double-Entry Ledgers and Balance Reports

LedgerLab parses plain-text journals of dated directives (account openings
and closings, prices, balance assertions and transactions), checks them for
consistency and turns them into period balance and register reports.

Key Features:
- **Positioned Parsing**: Every syntax node knows its exact source range;
  parse errors carry a nested context chain down to the offending character
- **Concurrent Loading**: Included journals are parsed in parallel and fed
  into a day-indexed journal
- **Sequential Stages**: Prices, balances, periods, closing and queries
  process days strictly in date order
- **Valuation**: Balances can be valued in any commodity reachable through
  the price graph
- **Reports**: Hierarchical balance trees and registers, exportable as
  pandas DataFrames

Architecture Overview:
- **syntax**: Scanner, syntax nodes, parser and canonical printer
- **core**: Registry, directives, journal, loader, dates and amounts
- **process**: Price, balance, period, close and query stages
- **report**: Report trees and registers
- **pipeline**: End-to-end ``balance_report`` and ``register_report``

Quick Start:
    ```python
    from ledgerlab import Interval, ReportConfig, balance_report, load_journal

    config = ReportConfig(journal="main.knut", valuation="CHF", interval=Interval.MONTHLY)
    journal = load_journal(config=config)
    print(balance_report(journal, config).to_frame())
    ```
"""

from __future__ import annotations

# core first: it resolves the import cycle with the syntax package
from . import core  # isort: skip
from . import syntax
from .config import ReportConfig, load_config
from .core import (
    Interval,
    Journal,
    JournalLoader,
    LedgerError,
    ParseError,
    Registry,
)
from .pipeline import balance_report, load_journal, register_report, run_stages
from .report import Register, Report

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "core",
    "syntax",
    "ReportConfig",
    "load_config",
    "Interval",
    "Journal",
    "JournalLoader",
    "LedgerError",
    "ParseError",
    "Registry",
    "balance_report",
    "load_journal",
    "register_report",
    "run_stages",
    "Register",
    "Report",
]
