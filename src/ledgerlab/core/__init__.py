"""
Core journal model for ledgerlab.
"""

from __future__ import annotations

# ranges and errors first: the syntax package imports them while this
# package is still initializing
from .ranges import Location, Range, find_location  # isort: skip
from .errors import (  # isort: skip
    AccountAlreadyOpenError,
    AccountError,
    AccountNotOpenError,
    AssertionFailedError,
    CloseWithNonZeroBalanceError,
    ConfigError,
    DuplicateAnnotationError,
    IncludeError,
    InvalidAccountError,
    LedgerError,
    ParseError,
    PipelineCancelledError,
    PostingToClosedOrUnopenedAccountError,
    UnexpectedCharacterError,
    UnexpectedEOFError,
)
from .amounts import Amounts, Key, KeyMapper
from .builder import Builder
from .dates import Interval, Partition, Period, end_of, start_of
from .directives import (
    Accrual,
    Assertion,
    Close,
    Directive,
    Include,
    Lot,
    Open,
    Posting,
    Price,
    Transaction,
)
from .journal import Day, Journal
from .loader import FileResolver, JournalLoader, MemoryResolver
from .registry import Account, AccountType, Commodity, Registry

__all__ = [
    "Location",
    "Range",
    "find_location",
    "LedgerError",
    "ParseError",
    "UnexpectedCharacterError",
    "UnexpectedEOFError",
    "DuplicateAnnotationError",
    "IncludeError",
    "AccountError",
    "InvalidAccountError",
    "AccountAlreadyOpenError",
    "AccountNotOpenError",
    "PostingToClosedOrUnopenedAccountError",
    "CloseWithNonZeroBalanceError",
    "AssertionFailedError",
    "PipelineCancelledError",
    "ConfigError",
    "Amounts",
    "Key",
    "KeyMapper",
    "Builder",
    "Interval",
    "Partition",
    "Period",
    "start_of",
    "end_of",
    "Open",
    "Close",
    "Price",
    "Assertion",
    "Lot",
    "Posting",
    "Accrual",
    "Transaction",
    "Include",
    "Directive",
    "Day",
    "Journal",
    "JournalLoader",
    "FileResolver",
    "MemoryResolver",
    "Account",
    "AccountType",
    "Commodity",
    "Registry",
]
