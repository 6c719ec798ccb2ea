"""
Smoke tests to verify basic imports and functionality.
"""

from datetime import date


def test_import_ledgerlab():
    """Test that we can import the main package."""
    import ledgerlab

    assert ledgerlab.__version__ == "0.1.0"


def test_import_subpackages():
    """Test that the subpackages expose their main types."""
    from ledgerlab.core import Journal, JournalLoader, Registry
    from ledgerlab.process import BalanceStage, PeriodFilter, PriceStage
    from ledgerlab.report import Register, Report
    from ledgerlab.syntax import Parser, format_file

    assert all(
        x is not None
        for x in (
            Journal,
            JournalLoader,
            Registry,
            BalanceStage,
            PeriodFilter,
            PriceStage,
            Register,
            Report,
            Parser,
            format_file,
        )
    )


def test_syntax_import_first():
    """Test that the syntax package imports on its own."""
    import ledgerlab.syntax.parser as parser

    file = parser.parse("2021-01-01 open Assets:Cash\n")
    assert len(file.directives) == 1


def test_basic_report():
    """Test a minimal end-to-end report."""
    from ledgerlab import ReportConfig, balance_report, load_journal
    from ledgerlab.core.loader import MemoryResolver

    text = (
        "2021-01-01 open Assets:Cash\n"
        "2021-01-01 open Equity:Opening\n"
        "\n"
        '2021-01-02 "Open"\n'
        "Equity:Opening Assets:Cash 10 CHF\n"
    )
    journal = load_journal("main.knut", resolver=MemoryResolver({"main.knut": text}))
    report = balance_report(journal, ReportConfig(to_date=date(2021, 1, 31)))
    assert len(report.to_frame()) == 2
