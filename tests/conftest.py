"""
Shared fixtures for the ledgerlab test suite.
"""

from __future__ import annotations

import pytest
from ledgerlab.core.journal import Journal
from ledgerlab.core.loader import JournalLoader, MemoryResolver
from ledgerlab.core.registry import Registry


@pytest.fixture
def registry() -> Registry:
    return Registry()


@pytest.fixture
def journal_from(registry: Registry):
    """Load a journal from in-memory files; the root file is ``main.knut``."""

    def load(text: str, files: dict[str, str] | None = None) -> Journal:
        sources = {"main.knut": text, **(files or {})}
        loader = JournalLoader(registry=registry, resolver=MemoryResolver(sources))
        return loader.load("main.knut")

    return load
