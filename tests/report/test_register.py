"""
Tests for the register report.
"""

from datetime import date
from decimal import Decimal

from ledgerlab.core.amounts import Key
from ledgerlab.report.register import Register


class TestRegister:
    """Test grouping of flows by date."""

    def test_nodes_sorted_by_date(self, registry):
        """Test that nodes come out in date order and rows aggregate."""
        cash, food = registry.account("Assets:Cash"), registry.account("Expenses:Food")
        chf = registry.commodity("CHF")
        register = Register()
        feb = Key(date=date(2021, 2, 28), account=cash, other=food, commodity=chf)
        jan = Key(date=date(2021, 1, 31), account=cash, other=food, commodity=chf)
        register.insert(feb, Decimal(-5))
        register.insert(jan, Decimal(-3))
        register.insert(jan, Decimal(-4))
        nodes = register.sorted_nodes()
        assert [n.date for n in nodes] == [date(2021, 1, 31), date(2021, 2, 28)]
        assert nodes[0].amounts[jan] == Decimal(-7)

    def test_to_frame_shows_inflow(self, registry):
        """Test that frame amounts are flows into the other account."""
        register = Register()
        register.insert(
            Key(
                date=date(2021, 1, 31),
                account=registry.account("Assets:Cash"),
                other=registry.account("Expenses:Food"),
                commodity=registry.commodity("CHF"),
                description="Lunch",
            ),
            Decimal(-20),
        )
        frame = register.to_frame()
        (row,) = frame.to_dict("records")
        assert row["other"] == "Expenses:Food"
        assert row["amount"] == Decimal(20)
        assert row["description"] == "Lunch"
