"""
Tests for the recursive-descent parser and its error chains.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st
from ledgerlab.core.errors import DuplicateAnnotationError, ParseError, UnexpectedCharacterError
from ledgerlab.core.ranges import Range
from ledgerlab.syntax import nodes
from ledgerlab.syntax.parser import Parser, parse


def messages(exc: ParseError) -> list[str]:
    return [e.message for e in exc.chain()]


def parse_error(text: str, path: str = "") -> ParseError:
    with pytest.raises(ParseError) as info:
        parse(text, path)
    return info.value


class TestDirectives:
    """Test parsing of the individual directive kinds."""

    def test_open_and_close(self):
        """Test that open and close directives keep their tokens."""
        file = parse("2020-01-01 open Assets:Cash\n2020-12-31 close Assets:Cash\n")
        open_, close = (d.directive for d in file.directives)
        assert isinstance(open_, nodes.Open)
        assert open_.date.extract() == "2020-01-01"
        assert open_.account.extract() == "Assets:Cash"
        assert isinstance(close, nodes.Close)
        assert close.account.extract() == "Assets:Cash"

    def test_price_and_balance(self):
        """Test price and balance directives."""
        file = parse("2020-01-01 price USD 0.91 CHF\n2020-01-02 balance Assets:Cash -10.5 CHF\n")
        price, assertion = (d.directive for d in file.directives)
        assert (price.commodity.extract(), price.price.extract(), price.target.extract()) == (
            "USD",
            "0.91",
            "CHF",
        )
        assert isinstance(assertion, nodes.Assertion)
        assert assertion.amount.extract() == "-10.5"

    def test_transaction_with_tags_and_bookings(self):
        """Test a transaction header with tags followed by bookings."""
        text = (
            '2020-01-05 "Salary" #work #monthly\n'
            "Income:Salary Assets:Cash 1000.50 CHF\n"
            "Assets:Cash Expenses:Fees 0.50 CHF\n"
            "\n"
            "2020-01-06 open Assets:Bank\n"
        )
        file = parse(text)
        assert len(file.directives) == 2
        t = file.directives[0].directive
        assert isinstance(t, nodes.Transaction)
        assert t.description.content.extract() == "Salary"
        assert [tag.extract() for tag in t.tags] == ["#work", "#monthly"]
        assert [(b.credit.extract(), b.debit.extract(), b.amount.extract()) for b in t.bookings] == [
            ("Income:Salary", "Assets:Cash", "1000.50"),
            ("Assets:Cash", "Expenses:Fees", "0.50"),
        ]

    def test_booking_lot_and_targets(self):
        """Test lot and target annotations on a booking."""
        text = (
            '2020-01-05 "Buy"\n'
            'Assets:Cash Assets:Stocks 10 AAPL {150.5 USD, "lot1", 2020-01-01} (USD,CHF)\n'
        )
        booking = parse(text).directives[0].directive.bookings[0]
        assert booking.lot.price.extract() == "150.5"
        assert booking.lot.commodity.extract() == "USD"
        assert booking.lot.label.content.extract() == "lot1"
        assert booking.lot.date.extract() == "2020-01-01"
        assert [c.extract() for c in booking.targets.targets] == ["USD", "CHF"]

    def test_addons(self):
        """Test performance and accrual annotations before a transaction."""
        text = (
            "@performance(USD)\n"
            "@accrue monthly 2020-01-01 2020-12-31 Assets:Accrued\n"
            '2020-01-01 "Insurance"\n'
            "Assets:Cash Expenses:Insurance 1200 USD\n"
        )
        t = parse(text).directives[0].directive
        assert isinstance(t, nodes.Transaction)
        assert [c.extract() for c in t.addons.performance.targets] == ["USD"]
        accrual = t.addons.accrual
        assert accrual.interval.extract() == "monthly"
        assert (accrual.start.extract(), accrual.end.extract()) == ("2020-01-01", "2020-12-31")
        assert accrual.account.extract() == "Assets:Accrued"

    def test_include(self):
        """Test that include paths exclude the quotes."""
        include = parse('include "sub/other.knut"\n').directives[0].directive
        assert isinstance(include, nodes.Include)
        assert include.path.content.extract() == "sub/other.knut"

    def test_account_macro(self):
        """Test that a $name account is flagged as a macro."""
        account = parse("2020-01-01 open $dividend\n").directives[0].directive.account
        assert account.macro
        assert account.extract() == "$dividend"

    def test_comments_and_blank_lines(self):
        """Test that comments and blank lines are skipped."""
        text = "# hash\n* star\n// slash\n\n   \n2020-01-01 open Assets:Cash\n"
        file = parse(text)
        assert len(file.directives) == 1

    def test_directive_ranges_cover_source(self):
        """Test that each directive's range extracts its source line."""
        text = "2020-01-01 open Assets:Cash\n2020-01-02 close Assets:Cash"
        file = parse(text, "main.knut")
        assert [d.range.extract() for d in file.directives] == [
            "2020-01-01 open Assets:Cash",
            "2020-01-02 close Assets:Cash",
        ]
        assert file.path == "main.knut"

    def test_parse_single_elements(self):
        """Test the element parsers on their own."""
        assert Parser("-12.75").parse_decimal().extract() == "-12.75"
        assert Parser("2021-03-04").parse_date().extract() == "2021-03-04"
        assert Parser("quarterly").parse_interval().extract() == "quarterly"


class TestErrorChains:
    """Test the nested context of parse errors."""

    def test_garbage_after_newline(self):
        """Test the full four-level chain for an invalid directive start."""
        text = "\nasdf"
        assert parse_error(text) == ParseError(
            "while parsing file ``",
            Range(0, 1, text, ""),
            ParseError(
                "while parsing directive",
                Range(1, 1, text, ""),
                ParseError(
                    "while parsing the date",
                    Range(1, 1, text, ""),
                    UnexpectedCharacterError("a", "a digit", Range(1, 1, text, "")),
                ),
            ),
        )

    def test_file_path_in_message(self):
        """Test that the outermost message names the file."""
        exc = parse_error("x", "journal.knut")
        assert exc.message == "while parsing file `journal.knut`"
        assert "journal.knut:1:1" in exc.format()

    def test_unknown_keyword(self):
        """Test the error for an unknown word after the date."""
        assert messages(parse_error("2020-01-01 foo")) == [
            "while parsing file ``",
            "while parsing directive",
            'unexpected character `f`, want one of {`"`, `open`, `close`, `price`, `balance`}',
        ]

    def test_misspelled_keyword(self):
        """Test the error for a keyword that only matches partially."""
        exc = parse_error("2020-01-01 opex Assets:Cash")
        assert messages(exc) == [
            "while parsing file ``",
            "while parsing directive",
            "while parsing `open` directive",
            'while reading "open"',
        ]
        inner = exc.chain()[-1]
        assert (inner.range.start, inner.range.end) == (11, 14)

    def test_unexpected_eof_in_account(self):
        """Test an account missing at the end of input."""
        assert messages(parse_error("2020-01-01 open ")) == [
            "while parsing file ``",
            "while parsing directive",
            "while parsing `open` directive",
            "while parsing account",
            "unexpected end of file, want a letter or a digit",
        ]

    def test_missing_whitespace_in_booking(self):
        """Test a booking whose amount runs into the commodity."""
        text = '2020-01-05 "x"\nAssets:Cash Assets:Bank 1x CHF\n'
        assert messages(parse_error(text)) == [
            "while parsing file ``",
            "while parsing directive",
            "while parsing transaction",
            "while parsing booking",
            "unexpected character `x`, want whitespace",
        ]

    def test_description_followed_by_text(self):
        """Test that the description must be followed by whitespace or a newline."""
        assert messages(parse_error('2020-01-05 "x"y\n')) == [
            "while parsing file ``",
            "while parsing directive",
            "while parsing transaction",
            "unexpected character `y`, want whitespace or a newline",
        ]

    def test_invalid_macro(self):
        """Test that account macros must start with a letter."""
        assert messages(parse_error("2020-01-01 open $1"))[-2:] == [
            "while parsing account",
            "unexpected character `1`, want a letter",
        ]

    def test_invalid_comment(self):
        """Test a single slash that does not start a comment."""
        assert messages(parse_error("/x")) == [
            "while parsing file ``",
            "while reading comment",
            "unexpected character `x`, want `/`",
        ]

    def test_unknown_addon(self):
        """Test an annotation that is neither performance nor accrue."""
        assert messages(parse_error("@foo\n")) == [
            "while parsing file ``",
            "while parsing directive",
            "while parsing addons",
            "unexpected character `f`, want one of {`@performance`, `@accrue`}",
        ]

    def test_invalid_interval(self):
        """Test an unknown accrual interval."""
        assert messages(parse_error("@accrue fortnightly 2020-01-01 2020-12-31 Assets:A\n")) == [
            "while parsing file ``",
            "while parsing directive",
            "while parsing addons",
            "while parsing accrual",
            "while parsing interval",
            "unexpected character `f`, want one of "
            "{`once`, `daily`, `weekly`, `monthly`, `quarterly`, `yearly`}",
        ]

    def test_duplicate_accrue(self):
        """Test that an accrual annotation may appear only once."""
        line = "@accrue monthly 2020-01-01 2020-12-31 Assets:Accrued\n"
        exc = parse_error(line + line + '2020-01-01 "x"\n')
        assert messages(exc) == [
            "while parsing file ``",
            "while parsing directive",
            "while parsing addons",
            "duplicate accrue annotation",
        ]
        inner = exc.chain()[-1]
        assert isinstance(inner, DuplicateAnnotationError)
        assert (inner.range.start, inner.range.end) == (54, 61)

    def test_duplicate_performance(self):
        """Test that a performance annotation may appear only once."""
        exc = parse_error('@performance(USD)\n@performance(CHF)\n2020-01-01 "x"\n')
        assert messages(exc)[-1] == "duplicate performance annotation"

    def test_duplicate_lot(self):
        """Test that a booking may carry only one lot."""
        exc = parse_error('2020-01-05 "x"\nAssets:A Assets:B 10 AAPL {1 USD} {2 USD}\n')
        assert messages(exc)[-2:] == ["while parsing booking", "duplicate lot"]

    def test_duplicate_targets(self):
        """Test that a booking may carry only one target declaration."""
        exc = parse_error('2020-01-05 "x"\nAssets:A Assets:B 10 AAPL (USD) (CHF)\n')
        assert messages(exc)[-1] == "duplicate target commodity declarations"

    def test_partial_result(self):
        """Test that a failed parse exposes the directives read so far."""
        exc = parse_error("2020-01-01 open Assets:Cash\n2020-01-02 open\n")
        partial = exc.partial
        assert isinstance(partial, nodes.File)
        assert len(partial.directives) == 2
        assert isinstance(partial.directives[0].directive, nodes.Open)
        assert partial.directives[1].directive is None
        assert partial.directives[1].range.start == 28


SEGMENT = st.text(alphabet=list("abXYäöéß07"), min_size=1, max_size=6)
COMMODITY = st.text(alphabet=list("ABCÄ1"), min_size=1, max_size=4)
FREE_TEXT = st.text(alphabet=list("ab é€😀.,:"), max_size=10)
ACCOUNT = st.lists(SEGMENT, min_size=1, max_size=3).map(":".join)
NUMBER = st.builds(
    lambda sign, units, cents: f"{sign}{units}" + ("" if cents is None else f".{cents:02d}"),
    st.sampled_from(["", "-"]),
    st.integers(min_value=0, max_value=99999),
    st.none() | st.integers(min_value=0, max_value=99),
)


@st.composite
def lots(draw):
    text = "{" + draw(NUMBER) + " " + draw(COMMODITY)
    if draw(st.booleans()):
        text += ', "' + draw(FREE_TEXT) + '"'
    if draw(st.booleans()):
        text += ", 2021-03-04"
    return text + "}"


@st.composite
def bookings(draw):
    parts = [draw(ACCOUNT), draw(ACCOUNT), draw(NUMBER), draw(COMMODITY)]
    if draw(st.booleans()):
        parts.append(draw(lots()))
    if draw(st.booleans()):
        parts.append("(" + ",".join(draw(st.lists(COMMODITY, min_size=1, max_size=3))) + ")")
    return parts


@st.composite
def transactions(draw):
    description = draw(FREE_TEXT)
    tags = draw(st.lists(SEGMENT.map(lambda t: "#" + t), max_size=3))
    lines = draw(st.lists(bookings(), max_size=3))
    header = " ".join([f'2020-01-0{draw(st.integers(1, 9))} "{description}"', *tags])
    text = header + "\n" + "".join(" ".join(parts) + "\n" for parts in lines)
    return text, description, tags, lines


class TestRangeLocality:
    """Test that node ranges reproduce the exact source text."""

    @given(st.lists(transactions(), min_size=1, max_size=4))
    def test_ranges_extract_source(self, generated):
        """Test that every node extracts its own source and directives tile the file."""
        text = "// journal für 2020 €\n" + "\n".join(t[0] for t in generated)
        file = parse(text, "locality.knut")
        assert len(file.directives) == len(generated)

        for directive, (source, description, tags, lines) in zip(file.directives, generated):
            assert directive.range.extract() == source
            t = directive.directive
            assert t.description.content.extract() == description
            assert [tag.extract() for tag in t.tags] == tags
            assert len(t.bookings) == len(lines)
            for booking, parts in zip(t.bookings, lines):
                assert booking.range.extract() == " ".join(parts)
                assert booking.credit.extract() == parts[0]
                assert booking.debit.extract() == parts[1]
                assert booking.amount.extract() == parts[2]
                assert booking.commodity.extract() == parts[3]
                annotations = [a.range.extract() for a in (booking.lot, booking.targets) if a]
                assert annotations == parts[4:]

        data = text.encode("utf-8")
        rebuilt, previous = b"", 0
        for directive in file.directives:
            rebuilt += data[previous : directive.range.start]
            rebuilt += directive.range.extract().encode("utf-8")
            previous = directive.range.end
        assert rebuilt + data[previous:] == data
        assert file.range.extract() == text
