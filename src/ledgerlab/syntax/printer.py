"""
Canonical printing of syntax directives.

``Printer.format`` re-renders every directive of a parsed file in canonical
form while copying the text between directives (comments, blank lines)
verbatim. Booking accounts are padded to a common width.
"""

from __future__ import annotations

import io
from typing import TextIO

from ..core.ranges import Range
from . import nodes

__all__ = ["Printer", "format_file"]


class Printer:
    """Writes directives to a text stream."""

    def __init__(self, out: TextIO):
        self.out = out
        self.padding = 0

    def initialize(self, directives: list[nodes.Directive]) -> None:
        """Compute the account padding from all bookings."""
        for d in directives:
            if isinstance(d.directive, nodes.Transaction):
                for b in d.directive.bookings:
                    self.padding = max(
                        self.padding, len(b.credit.extract()), len(b.debit.extract())
                    )

    def print_directive(self, directive: nodes.Directive) -> None:
        d = directive.directive
        if isinstance(d, nodes.Transaction):
            self._print_transaction(d)
        elif isinstance(d, nodes.Open):
            self.out.write(f"{d.date.extract()} open {d.account.extract()}")
        elif isinstance(d, nodes.Close):
            self.out.write(f"{d.date.extract()} close {d.account.extract()}")
        elif isinstance(d, nodes.Price):
            self.out.write(
                f"{d.date.extract()} price {d.commodity.extract()} "
                f"{d.price.extract()} {d.target.extract()}"
            )
        elif isinstance(d, nodes.Assertion):
            self.out.write(
                f"{d.date.extract()} balance {d.account.extract()} "
                f"{d.amount.extract()} {d.commodity.extract()}"
            )
        elif isinstance(d, nodes.Include):
            self.out.write(f'include "{d.path.content.extract()}"')
        else:
            raise TypeError(f"unknown directive: {directive!r}")

    def _print_transaction(self, t: nodes.Transaction) -> None:
        if t.addons is not None and t.addons.accrual is not None:
            a = t.addons.accrual
            self.out.write(
                f"@accrue {a.interval.extract()} {a.start.extract()} "
                f"{a.end.extract()} {a.account.extract()}\n"
            )
        if t.addons is not None and t.addons.performance is not None:
            self.out.write(f"@performance({_targets(t.addons.performance)})\n")
        self.out.write(f'{t.date.extract()} "{t.description.content.extract()}"')
        for tag in t.tags:
            self.out.write(f" {tag.extract()}")
        self.out.write("\n")
        for b in t.bookings:
            self._print_booking(b)
            self.out.write("\n")

    def _print_booking(self, b: nodes.Booking) -> None:
        self.out.write(
            f"{b.credit.extract().ljust(self.padding)} {b.debit.extract().ljust(self.padding)} "
            f"{b.amount.extract().rjust(10)} {b.commodity.extract()}"
        )
        if b.lot is not None:
            parts = [f"{b.lot.price.extract()} {b.lot.commodity.extract()}"]
            if b.lot.label is not None:
                parts.append(b.lot.label.range.extract())
            if b.lot.date is not None:
                parts.append(b.lot.date.extract())
            self.out.write(" {" + ", ".join(parts) + "}")
        if b.targets is not None:
            self.out.write(f" ({_targets(b.targets)})")

    def print_file(self, file: nodes.File) -> None:
        self.initialize(file.directives)
        for d in file.directives:
            self.print_directive(d)
            self.out.write("\n")

    def format(self, file: nodes.File) -> None:
        """Print ``file`` canonically, keeping the text between directives."""
        self.initialize(file.directives)
        pos = 0
        for d in file.directives:
            self.out.write(Range(pos, d.range.start, file.text).extract())
            self.print_directive(d)
            pos = d.range.end
        self.out.write(Range(pos, file.range.end, file.text).extract())


def _targets(performance: nodes.Performance) -> str:
    return ",".join(c.extract() for c in performance.targets)


def format_file(file: nodes.File) -> str:
    """Return the canonical text of a parsed file."""
    out = io.StringIO()
    Printer(out).format(file)
    return out.getvalue()
