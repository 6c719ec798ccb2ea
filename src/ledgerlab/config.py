"""Report configuration loaded from YAML/JSON sources."""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from .core.dates import Interval
from .core.errors import ConfigError

__all__ = ["ConfigError", "ReportConfig", "load_config"]


@dataclass(slots=True)
class ReportConfig:
    """
    Settings for loading a journal and building reports.

    Attributes:
        journal: Path of the root journal file
        valuation: Commodity to value balances in (None reports quantities)
        from_date: Earliest reported date
        to_date: Latest reported date (today when None)
        interval: Reporting period length
        last: Keep only this many trailing periods (0 keeps all)
        close: Close income and expense accounts at each period boundary
        diff: Report changes over periods instead of balances
        retained_earnings: Account receiving closed income and expenses
        mapping: ``(level, regex)`` rules shortening matching accounts
        remap: Regexes of accounts merged into ``remap_target``
        remap_target: Account receiving remapped accounts
        accounts: Regexes selecting reported accounts (all when empty)
        commodities: Regexes selecting reported commodities (all when empty)
        macros: Account macro substitutions
        max_workers: Thread pool size for parsing and aggregation
        channel_capacity: Capacity of the directive channel while parsing
    """

    journal: str | None = None
    valuation: str | None = None
    from_date: date | None = None
    to_date: date | None = None
    interval: Interval = Interval.ONCE
    last: int = 0
    close: bool = True
    diff: bool = False
    retained_earnings: str = "Equity:RetainedEarnings"
    mapping: list[tuple[int, str]] = field(default_factory=list)
    remap: list[str] = field(default_factory=list)
    remap_target: str = "Equity:Remapped"
    accounts: list[str] = field(default_factory=list)
    commodities: list[str] = field(default_factory=list)
    macros: dict[str, str] = field(default_factory=dict)
    max_workers: int = 4
    channel_capacity: int = 1000
    source: str = "<defaults>"


def load_config(
    source: str | Path | dict[str, Any], *, format: str | None = None
) -> ReportConfig:
    """Parse a report configuration from YAML/JSON/dict."""

    mapping, label = _read_source(source, format=format)
    known = {
        "journal",
        "valuation",
        "from",
        "to",
        "interval",
        "last",
        "close",
        "diff",
        "retained_earnings",
        "mapping",
        "remap",
        "remap_target",
        "accounts",
        "commodities",
        "macros",
        "max_workers",
        "channel_capacity",
    }
    unknown = sorted(set(mapping) - known)
    if unknown:
        raise ConfigError(f"{label}: unknown keys {', '.join(unknown)}")

    defaults = ReportConfig()
    from_date = _coerce_date(mapping.get("from"), f"{label}::from")
    to_date = _coerce_date(mapping.get("to"), f"{label}::to")
    if from_date and to_date and from_date > to_date:
        raise ConfigError(f"{label}: 'from' ({from_date}) is after 'to' ({to_date})")
    try:
        interval = Interval.parse(mapping.get("interval", defaults.interval))
    except (ValueError, AttributeError) as exc:
        raise ConfigError(f"{label}::interval: {exc}") from exc

    return ReportConfig(
        journal=_coerce_optional_str(mapping.get("journal"), f"{label}::journal"),
        valuation=_coerce_optional_str(mapping.get("valuation"), f"{label}::valuation"),
        from_date=from_date,
        to_date=to_date,
        interval=interval,
        last=_coerce_int(mapping.get("last", 0), f"{label}::last", minimum=0),
        close=_coerce_bool(mapping.get("close", defaults.close), f"{label}::close"),
        diff=_coerce_bool(mapping.get("diff", defaults.diff), f"{label}::diff"),
        retained_earnings=_coerce_str(
            mapping.get("retained_earnings", defaults.retained_earnings),
            f"{label}::retained_earnings",
        ),
        mapping=_coerce_mapping(mapping.get("mapping"), f"{label}::mapping"),
        remap=_ensure_str_list(mapping.get("remap"), f"{label}::remap"),
        remap_target=_coerce_str(
            mapping.get("remap_target", defaults.remap_target), f"{label}::remap_target"
        ),
        accounts=_ensure_str_list(mapping.get("accounts"), f"{label}::accounts"),
        commodities=_ensure_str_list(mapping.get("commodities"), f"{label}::commodities"),
        macros=_coerce_macros(mapping.get("macros"), f"{label}::macros"),
        max_workers=_coerce_int(
            mapping.get("max_workers", defaults.max_workers), f"{label}::max_workers", minimum=1
        ),
        channel_capacity=_coerce_int(
            mapping.get("channel_capacity", defaults.channel_capacity),
            f"{label}::channel_capacity",
            minimum=1,
        ),
        source=label,
    )


def _read_source(
    source: str | Path | dict[str, Any], *, format: str | None
) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = (format or path.suffix.lstrip(".")).lower()
    text = path.read_text(encoding="utf-8")
    if fmt in {"yaml", "yml", ""}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    elif fmt == "json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"invalid JSON in {path}: {exc}") from exc
    else:
        raise ConfigError(f"Unsupported config format '{fmt}' for {path}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping (source={path})")
    return data, str(path)


def _coerce_date(value: Any, ctx: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError as exc:
            raise ConfigError(f"{ctx}: invalid ISO date '{value}'") from exc
    raise ConfigError(f"{ctx}: expected ISO date string")


def _coerce_int(value: Any, ctx: str, *, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{ctx}: expected an integer")
    if value < minimum:
        raise ConfigError(f"{ctx}: must be >= {minimum}")
    return value


def _coerce_bool(value: Any, ctx: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{ctx}: expected a boolean")
    return value


def _coerce_str(value: Any, ctx: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{ctx}: expected non-empty string")
    return value


def _coerce_optional_str(value: Any, ctx: str) -> str | None:
    if value is None:
        return None
    return _coerce_str(value, ctx)


def _ensure_str_list(value: Any, ctx: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ConfigError(f"{ctx}: expected a list")
    return [_coerce_str(item, f"{ctx}[{idx}]") for idx, item in enumerate(value)]


def _coerce_mapping(value: Any, ctx: str) -> list[tuple[int, str]]:
    """Accept ``"<level>,<regex>"`` strings or ``{level, regex}`` mappings."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{ctx}: expected a list")
    rules: list[tuple[int, str]] = []
    for idx, item in enumerate(value):
        item_ctx = f"{ctx}[{idx}]"
        if isinstance(item, str):
            level, sep, regex = item.partition(",")
            if not sep or not level.strip().isdigit():
                raise ConfigError(f"{item_ctx}: expected '<level>,<regex>'")
            rules.append((int(level), regex))
        elif isinstance(item, dict):
            rules.append(
                (
                    _coerce_int(item.get("level"), f"{item_ctx}.level", minimum=0),
                    _coerce_str(item.get("regex"), f"{item_ctx}.regex"),
                )
            )
        else:
            raise ConfigError(f"{item_ctx}: expected a string or a mapping")
    return rules


def _coerce_macros(value: Any, ctx: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{ctx}: expected a mapping")
    return {
        _coerce_str(k, f"{ctx}.key"): _coerce_str(v, f"{ctx}.{k}") for k, v in value.items()
    }
