"""
Transaction parser for CAS folio windows.

This module walks the lines between a folio's ``Opening Unit Balance:`` and
``Closing Unit Balance:`` markers and turns them into Transaction records.
Two row shapes are interleaved in that window:

- Financial rows: ``DATE AMOUNT NAV UNITS DESCRIPTION [UNIT_BALANCE]``, where
  the description may overflow onto the following line.
- Administrative rows: a ``***``-marked description whose date (and, for
  Stamp Duty / STT, a fee amount) sits on the line above, or on the same
  line before the marker.

The walk is an explicit state machine with a cursor so that the lookahead
and consume-next-line steps are visible in one place.
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple

from cas_extract.classifier import ADMIN_MARKER, TransactionClassifier
from cas_extract.models import (
    Diagnostic,
    DiagnosticKind,
    Transaction,
    TransactionType,
)
from cas_extract.tokens import (
    LEADING_AMOUNT_PATTERN,
    is_date_range,
    is_signed_number_token,
    is_unsigned_number_token,
    match_date_token,
    parse_numeric_value,
)
from cas_extract.validator import TransactionValidator

logger = logging.getLogger(__name__)

ADMIN_PLACEHOLDER_DESCRIPTION = "***Administrative Entry***"
EMPTY_MARKER_PATTERN = re.compile(r"^\*{3,}$")
TOKEN_PATTERN = re.compile(r"\S+")


class ParserState(Enum):
    """
    States of the transaction window walk.

    EXPECT_ROW_START: the cursor is on a line that may open a new row.
    EXPECT_ADMIN_DESCRIPTION: a date line was read and the cursor is on the
        ``***`` line that completes it.
    EXPECT_OVERFLOW_DESCRIPTION: a financial row had no description and the
        cursor is on the line that carries it.
    """
    EXPECT_ROW_START = auto()
    EXPECT_ADMIN_DESCRIPTION = auto()
    EXPECT_OVERFLOW_DESCRIPTION = auto()


@dataclass
class WindowLine:
    """A non-blank line of the transaction window."""
    line_number: int
    text: str


@dataclass
class PendingRow:
    """
    A row whose date line has been read but which is not yet complete.

    Attributes:
        date: Date token of the row
        line_number: Line number of the date line
        raw_text: The date line as printed
        amount: Amount (financial) or leading fee amount (administrative)
        nav: NAV slot of a financial row
        units: Units slot of a financial row
        unit_balance: Trailing unit balance of a financial row
    """
    date: str
    line_number: int
    raw_text: str
    amount: Optional[Decimal] = None
    nav: Optional[Decimal] = None
    units: Optional[Decimal] = None
    unit_balance: Optional[Decimal] = None


class MalformedRowError(ValueError):
    """A numeric slot token could not be parsed."""


class TransactionsParser:
    """
    Parser for the transaction history of a single folio.

    Handles:
    - Financial rows with parenthesis-negative amounts and units
    - Descriptions that overflow onto the next line
    - Administrative ``***`` rows with the date on the previous line
    - Inline administrative rows (``DATE AMOUNT *** Stamp Duty ***``)
    - Page-header date ranges inside the window

    Records are emitted in source order; nothing is re-sorted.
    """

    OPENING_MARKER = "Opening Unit Balance:"
    CLOSING_MARKERS = ("Closing Unit Balance:", "NAV on")

    def __init__(
        self,
        classifier: Optional[TransactionClassifier] = None,
        validator: Optional[TransactionValidator] = None,
    ):
        """
        Initialize the transactions parser.

        Args:
            classifier: Classifier for descriptions (default instance if None).
            validator: Validator applied to every record (default if None).
        """
        self.classifier = classifier or TransactionClassifier()
        self.validator = validator or TransactionValidator()
        self.state = ParserState.EXPECT_ROW_START
        self.cursor = 0
        self.pending: Optional[PendingRow] = None
        self.transactions: List[Transaction] = []
        self.diagnostics: List[Diagnostic] = []

    def _reset(self) -> None:
        self.state = ParserState.EXPECT_ROW_START
        self.cursor = 0
        self.pending = None
        self.transactions = []
        self.diagnostics = []

    def parse(self, folio_text: str) -> List[Transaction]:
        """
        Parse the transaction window of a folio.

        Args:
            folio_text: Text of a single folio window (or any text holding
                the opening/closing balance markers).

        Returns:
            Transactions in source order. Problems are recorded in
            ``self.diagnostics``.
        """
        self._reset()

        window = self.find_transaction_window(folio_text)
        if window is None:
            self._diagnose(
                DiagnosticKind.MISSING_TRANSACTION_WINDOW,
                None,
                "",
                "Opening/Closing Unit Balance markers not found",
            )
            return self.transactions

        logger.debug(f"Parsing transactions from {len(window)} window lines")

        handlers = {
            ParserState.EXPECT_ROW_START: self._handle_row_start,
            ParserState.EXPECT_ADMIN_DESCRIPTION: self._handle_admin_description,
            ParserState.EXPECT_OVERFLOW_DESCRIPTION: self._handle_overflow_description,
        }
        while self.cursor < len(window):
            handlers[self.state](window)

        logger.debug(f"Parsed {len(self.transactions)} transactions")
        return self.transactions

    def find_transaction_window(self, folio_text: str) -> Optional[List[WindowLine]]:
        """
        Locate the non-blank lines between the opening and closing markers.

        Blank lines are dropped, so a date line separated from its ``***``
        line by blank lines still pairs with it.

        Returns:
            Window lines with 1-indexed line numbers, or None if either
            marker is missing.
        """
        lines = folio_text.split("\n")
        start: Optional[int] = None
        end: Optional[int] = None

        for i, line in enumerate(lines):
            if self.OPENING_MARKER in line:
                start = i + 1
            elif start is not None and any(m in line for m in self.CLOSING_MARKERS):
                end = i
                break

        if start is None or end is None:
            return None

        return [
            WindowLine(line_number=i + 1, text=lines[i].strip())
            for i in range(start, end)
            if lines[i].strip()
        ]

    # State handlers

    def _handle_row_start(self, window: List[WindowLine]) -> None:
        line = window[self.cursor]
        next_line = window[self.cursor + 1] if self.cursor + 1 < len(window) else None

        if ADMIN_MARKER in line.text:
            self._handle_inline_admin(line)
            self.cursor += 1
            return

        date = match_date_token(line.text)
        if date is None:
            logger.debug(f"Skipping non-transaction line {line.line_number}: {line.text!r}")
            self._diagnose(DiagnosticKind.SKIPPED_LINE, line.line_number, line.text)
            self.cursor += 1
            return

        rest = line.text[len(date):].strip()

        if next_line is not None and self._is_dateless_marker(next_line.text):
            # The date line belongs to the administrative row that follows
            self.pending = PendingRow(
                date=date,
                line_number=line.line_number,
                raw_text=line.text,
                amount=self._leading_amount(rest),
            )
            self.state = ParserState.EXPECT_ADMIN_DESCRIPTION
            self.cursor += 1
            return

        if is_date_range(rest):
            self._diagnose(
                DiagnosticKind.DATE_RANGE_ROW,
                line.line_number,
                line.text,
                "Date range header inside transaction window",
            )
            self.cursor += 1
            return

        try:
            slots, description = self.split_financial_row(rest)
        except MalformedRowError as e:
            self._diagnose(
                DiagnosticKind.MALFORMED_ROW,
                line.line_number,
                line.text,
                f"Unparseable numeric token {e}",
            )
            self.cursor += 1
            return

        pending = PendingRow(
            date=date, line_number=line.line_number, raw_text=line.text, **slots
        )

        if not description and next_line is not None and self._can_overflow_into(next_line):
            self.pending = pending
            self.state = ParserState.EXPECT_OVERFLOW_DESCRIPTION
            self.cursor += 1
            return

        if not description and all(v is None for v in slots.values()):
            self._diagnose(
                DiagnosticKind.MALFORMED_ROW,
                line.line_number,
                line.text,
                "Date line without amounts or description",
            )
            self.cursor += 1
            return

        self._emit_financial(pending, description)
        self.cursor += 1

    def _handle_admin_description(self, window: List[WindowLine]) -> None:
        line = window[self.cursor]
        pending = self.pending
        self._emit_administrative(
            date=pending.date,
            fee_amount=pending.amount,
            marker_text=line.text,
            line=line,
        )
        self.pending = None
        self.state = ParserState.EXPECT_ROW_START
        self.cursor += 1

    def _handle_overflow_description(self, window: List[WindowLine]) -> None:
        line = window[self.cursor]
        pending = self.pending
        description, balance = self.split_trailing_balance(line.text, allow_bare=False)
        if balance is not None:
            pending.unit_balance = balance
        self._emit_financial(pending, description)
        self.pending = None
        self.state = ParserState.EXPECT_ROW_START
        self.cursor += 1

    def _handle_inline_admin(self, line: WindowLine) -> None:
        """A ``***`` line seen at row start must carry its own date."""
        date = match_date_token(line.text)
        if date is None:
            logger.warning(
                f"Administrative transaction without a date on the previous line. "
                f"Line {line.line_number}: {line.text!r}"
            )
            self._diagnose(
                DiagnosticKind.ADMIN_WITHOUT_DATE,
                line.line_number,
                line.text,
                "Administrative marker without a preceding date",
            )
            return

        rest = line.text[len(date):].strip()
        marker_start = rest.find("*")
        self._emit_administrative(
            date=date,
            fee_amount=self._leading_amount(rest[:marker_start]),
            marker_text=rest[marker_start:],
            line=line,
        )

    # Row splitting

    def split_financial_row(self, rest: str) -> Tuple[Dict[str, Optional[Decimal]], str]:
        """
        Slot the remainder of a date line into amount, nav, units and balance.

        Args:
            rest: The line with its date token removed.

        Returns:
            Tuple of (slot values keyed by field name, description text).

        Raises:
            MalformedRowError: If a numeric-looking slot token cannot be parsed.
        """
        tokens = list(TOKEN_PATTERN.finditer(rest))
        slots: Dict[str, Optional[Decimal]] = {
            "amount": None,
            "nav": None,
            "units": None,
            "unit_balance": None,
        }

        index = 0
        for name, accepts in (
            ("amount", is_signed_number_token),
            ("nav", is_unsigned_number_token),
            ("units", is_signed_number_token),
        ):
            if index >= len(tokens) or not accepts(tokens[index].group()):
                break
            value = parse_numeric_value(tokens[index].group())
            if value is None:
                raise MalformedRowError(repr(tokens[index].group()))
            slots[name] = value
            index += 1

        remaining = tokens[index:]
        if slots["units"] is not None and remaining:
            last = remaining[-1].group()
            if is_unsigned_number_token(last):
                balance = parse_numeric_value(last)
                if balance is not None:
                    slots["unit_balance"] = balance
                    remaining = remaining[:-1]

        if not remaining:
            return slots, ""
        return slots, rest[remaining[0].start():remaining[-1].end()]

    @staticmethod
    def split_trailing_balance(
        text: str, allow_bare: bool = True
    ) -> Tuple[str, Optional[Decimal]]:
        """
        Split a trailing unsigned number off a description line.

        Args:
            text: Description text.
            allow_bare: Whether a line that is only a number counts as a balance.

        Returns:
            Tuple of (description, unit balance or None).
        """
        tokens = list(TOKEN_PATTERN.finditer(text))
        if not tokens:
            return "", None
        if len(tokens) < 2 and not allow_bare:
            return text.strip(), None

        last = tokens[-1].group()
        if is_unsigned_number_token(last):
            balance = parse_numeric_value(last)
            if balance is not None:
                return text[:tokens[-1].start()].strip(), balance
        return text.strip(), None

    # Record construction

    def _emit_financial(self, pending: PendingRow, description: str) -> None:
        description = description.strip()
        if description:
            tx_type = self.classifier.classify(description)
        else:
            tx_type = TransactionType.PURCHASE
            description = tx_type.value

        record = {
            "date": pending.date,
            "amount": pending.amount,
            "nav": pending.nav,
            "units": pending.units,
            "transaction_type": tx_type,
            "unit_balance": pending.unit_balance,
            "description": description,
        }
        self._append(record, pending.line_number, pending.raw_text)

    def _emit_administrative(
        self,
        date: str,
        fee_amount: Optional[Decimal],
        marker_text: str,
        line: WindowLine,
    ) -> None:
        description = marker_text.strip()
        if EMPTY_MARKER_PATTERN.match(description):
            logger.warning(
                f"Empty administrative transaction description at line "
                f"{line.line_number}. Using default description."
            )
            self._diagnose(
                DiagnosticKind.EMPTY_ADMIN_MARKER,
                line.line_number,
                line.text,
                f"Replaced with {ADMIN_PLACEHOLDER_DESCRIPTION}",
            )
            description = ADMIN_PLACEHOLDER_DESCRIPTION

        tx_type = self.classifier.classify(description)
        record = {
            "date": date,
            "amount": fee_amount if tx_type.carries_fee else None,
            "nav": None,
            "units": None,
            "transaction_type": tx_type,
            "unit_balance": None,
            "description": description,
        }
        self._append(record, line.line_number, line.text)

    def _append(self, record: Dict[str, Any], line_number: int, raw_text: str) -> None:
        result = self.validator.validate(record)
        if not result.is_valid:
            logger.warning(f"Invalid transaction skipped. Line {line_number}: {raw_text!r}")
            self._diagnose(
                DiagnosticKind.REJECTED_RECORD,
                line_number,
                raw_text,
                "; ".join(result.errors),
            )
            return

        transaction = self.validator.build(record)
        self.transactions.append(transaction)
        logger.debug(
            f"Parsed transaction: {transaction.date} {transaction.transaction_type.value}"
        )

    # Helpers

    @staticmethod
    def _is_dateless_marker(text: str) -> bool:
        return ADMIN_MARKER in text and match_date_token(text) is None

    @staticmethod
    def _can_overflow_into(line: WindowLine) -> bool:
        return ADMIN_MARKER not in line.text and match_date_token(line.text) is None

    @staticmethod
    def _leading_amount(text: str) -> Optional[Decimal]:
        match = LEADING_AMOUNT_PATTERN.match(text.strip())
        return parse_numeric_value(match.group(1)) if match else None

    def _diagnose(
        self,
        kind: DiagnosticKind,
        line_number: Optional[int],
        raw_text: str,
        message: str = "",
    ) -> None:
        self.diagnostics.append(
            Diagnostic(kind=kind, line_number=line_number, raw_text=raw_text, message=message)
        )


def parse_transactions(folio_text: str) -> List[Transaction]:
    """
    Convenience function to parse the transactions of a folio window.

    Args:
        folio_text: Text of a single folio window.

    Returns:
        List of parsed Transaction objects in source order.
    """
    parser = TransactionsParser()
    return parser.parse(folio_text)
