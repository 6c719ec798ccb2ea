"""
End-to-end report pipelines.

``load_journal`` parses a journal with its includes; ``balance_report`` and
``register_report`` run the sequential stages over the journal's days:

    prices -> balance -> periods -> close -> query

All settings come from a ``ReportConfig``.

**Example Usage:**
    ```python
    from ledgerlab.config import load_config
    from ledgerlab.pipeline import balance_report, load_journal

    config = load_config("report.yaml")
    journal = load_journal(config.journal, config=config)
    report = balance_report(journal, config)
    print(report.to_frame())
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from .config import ReportConfig
from .core.amounts import KeyMapper, all_of, identity
from .core.journal import Journal
from .core.loader import JournalLoader, Resolver
from .core.registry import Registry, remap, shorten
from .process import (
    BalanceQuery,
    BalanceStage,
    CloseStage,
    PeriodFilter,
    PriceStage,
    RegisterQuery,
    filter_account,
    filter_commodity,
)
from .report import Register, Report

__all__ = ["run_stages", "load_journal", "balance_report", "register_report"]

logger = logging.getLogger(__name__)

Stage = Callable[[Iterable[Any]], Iterable[Any]]


def run_stages(items: Iterable[Any], *stages: Stage) -> list[Any]:
    """Thread ``items`` through ``stages`` in order and drain the result."""
    stream: Iterable[Any] = items
    for stage in stages:
        stream = stage(stream)
    return list(stream)


def load_journal(
    path: str | None = None,
    resolver: Resolver | None = None,
    registry: Registry | None = None,
    config: ReportConfig | None = None,
) -> Journal:
    """
    Parse a journal and everything it includes.

    Args:
        path: Root journal path (defaults to ``config.journal``)
        resolver: Returns file contents by path (reads the filesystem by
            default)
        registry: Registry to intern into (a fresh one by default)
        config: Supplies macros, worker count and channel capacity

    Raises:
        ValueError: If no path is given
        ParseError: For syntax errors in any file
        IncludeError: When a file cannot be read
    """
    config = config or ReportConfig()
    path = path or config.journal
    if not path:
        raise ValueError("no journal path given")
    loader = JournalLoader(
        registry=registry,
        resolver=resolver,
        macros=config.macros,
        max_workers=config.max_workers,
        capacity=config.channel_capacity,
    )
    return loader.load(path)


def _account_mapper(registry: Registry, config: ReportConfig):
    remapper = remap(registry.accounts, config.remap, config.remap_target)
    shortener = shorten(registry.accounts, config.mapping)
    return lambda account: shortener(remapper(account))


def balance_report(journal: Journal, config: ReportConfig | None = None) -> Report:
    """
    Build a balance report over the configured periods.

    Returns:
        The report with weights computed
    """
    config = config or ReportConfig()
    registry = journal.registry
    valuation = registry.commodity(config.valuation) if config.valuation else None
    report = Report(registry, max_workers=config.max_workers)
    mapper = KeyMapper(
        date=identity,
        account=_account_mapper(registry, config),
        commodity=identity,
        valuation=identity,
    )
    run_stages(
        journal.sorted_days(),
        PriceStage(valuation),
        BalanceStage(valuation),
        PeriodFilter(config.from_date, config.to_date, config.interval, config.last),
        CloseStage(registry, config.close, config.retained_earnings),
        BalanceQuery(
            report,
            mapper=mapper,
            predicate=all_of(
                filter_account(config.accounts), filter_commodity(config.commodities)
            ),
            valuation=valuation,
            diff=config.diff,
        ),
    )
    report.compute_weights()
    logger.info("balance report: %d nodes", len(report.nodes()))
    return report


def register_report(journal: Journal, config: ReportConfig | None = None) -> Register:
    """Build a register of the postings per period."""
    config = config or ReportConfig()
    registry = journal.registry
    valuation = registry.commodity(config.valuation) if config.valuation else None
    register = Register()
    account_mapper = _account_mapper(registry, config)
    mapper = KeyMapper(
        date=identity,
        account=account_mapper,
        other=account_mapper,
        commodity=identity,
        valuation=identity,
        description=identity,
    )
    run_stages(
        journal.sorted_days(),
        PriceStage(valuation),
        BalanceStage(valuation),
        PeriodFilter(config.from_date, config.to_date, config.interval, config.last),
        RegisterQuery(
            register,
            mapper=mapper,
            predicate=all_of(
                filter_account(config.accounts), filter_commodity(config.commodities)
            ),
            valuation=valuation,
        ),
    )
    logger.info("register report: %d dates", len(register.nodes))
    return register
