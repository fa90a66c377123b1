"""
Data models for the CAS fund-transaction extractor.

This module defines the core data structures using dataclasses for:
- Transaction type taxonomy
- Transaction records
- Folio identity, balances and transaction history
- Fund sections and the top-level extraction result
- Diagnostics and validation results
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class TransactionType(Enum):
    """
    Closed set of transaction types in a CAS transaction history.

    The first three members are administrative (marked with ``***`` in the
    source text); the rest are financial.
    """
    ADMINISTRATIVE = "Administrative"
    STAMP_DUTY = "Stamp Duty"
    STT_PAID = "STT Paid"
    SYSTEMATIC_INVESTMENT = "Systematic Investment"
    SWITCH_OUT = "Switch-Out"
    SWITCH_IN = "Switch-In"
    REDEMPTION = "Redemption"
    DIVIDEND = "Dividend"
    PURCHASE = "Purchase"

    @property
    def is_administrative(self) -> bool:
        return self in ADMINISTRATIVE_TYPES

    @property
    def carries_fee(self) -> bool:
        """Administrative types that may carry a small fee amount."""
        return self in (TransactionType.STAMP_DUTY, TransactionType.STT_PAID)

    @classmethod
    def from_label(cls, label: object) -> Optional["TransactionType"]:
        """Look up a member by its display value, or return None."""
        if isinstance(label, cls):
            return label
        for member in cls:
            if member.value == label:
                return member
        return None


ADMINISTRATIVE_TYPES = frozenset({
    TransactionType.ADMINISTRATIVE,
    TransactionType.STAMP_DUTY,
    TransactionType.STT_PAID,
})

VALID_TRANSACTION_TYPES = [t.value for t in TransactionType]


class DiagnosticKind(Enum):
    """Kinds of non-fatal problems recorded while parsing."""
    FUND_NOT_FOUND = "fund_not_found"
    MISSING_ISIN_BLOCK = "missing_isin_block"
    MISSING_TRANSACTION_WINDOW = "missing_transaction_window"
    ADMIN_WITHOUT_DATE = "admin_without_date"
    EMPTY_ADMIN_MARKER = "empty_admin_marker"
    DATE_RANGE_ROW = "date_range_row"
    MALFORMED_ROW = "malformed_row"
    SKIPPED_LINE = "skipped_line"
    REJECTED_RECORD = "rejected_record"
    FOLIO_FAILED = "folio_failed"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single non-fatal parsing problem.

    Attributes:
        kind: What went wrong
        line_number: 1-indexed line within the text being parsed, if known
        raw_text: The offending source text
        message: Human readable explanation
    """
    kind: DiagnosticKind
    line_number: Optional[int]
    raw_text: str
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "line_number": self.line_number,
            "raw_text": self.raw_text,
            "message": self.message,
        }


def _decimal_to_str(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


@dataclass
class Transaction:
    """
    Represents a single row of a folio's transaction history.

    Attributes:
        date: Transaction date exactly as printed (DD-Mon-YYYY)
        transaction_type: Classified transaction type
        description: Original description text from the statement
        amount: Transaction amount (negative for outflows), or a fee amount
            for Stamp Duty / STT rows
        nav: NAV at which the transaction was executed
        units: Units transacted (negative for redemptions/switch-outs)
        unit_balance: Running unit balance after this transaction
    """
    date: str
    transaction_type: TransactionType
    description: str
    amount: Optional[Decimal] = None
    nav: Optional[Decimal] = None
    units: Optional[Decimal] = None
    unit_balance: Optional[Decimal] = None

    def __post_init__(self):
        """Normalize transaction data and enforce the administrative shape."""
        self.description = self.description.strip() if self.description else ""
        if self.transaction_type.is_administrative:
            self.nav = None
            self.units = None
            self.unit_balance = None

    @property
    def is_administrative(self) -> bool:
        return self.transaction_type.is_administrative

    @property
    def label(self) -> str:
        """Description with the ``***`` markers and stray asterisks removed."""
        return clean_transaction_label(self.description)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "amount": _decimal_to_str(self.amount),
            "nav": _decimal_to_str(self.nav),
            "units": _decimal_to_str(self.units),
            "transaction_type": self.transaction_type.value,
            "unit_balance": _decimal_to_str(self.unit_balance),
            "description": self.description,
            "is_administrative": self.is_administrative,
        }


def clean_transaction_label(description: str) -> str:
    """Strip ``***`` markers and stray asterisks from a description."""
    if not description:
        return ""
    return description.replace("***", "").strip("* \t")


@dataclass
class Folio:
    """
    A folio block: identity, balances and transaction history.

    Every folio is anchored on a ``PAN:`` line, so ``pan`` is always set.
    ``scheme_name`` and ``isin`` are None when the ISIN block is absent.
    """
    pan: str
    kyc_status: Optional[str] = None
    scheme_name: Optional[str] = None
    isin: Optional[str] = None
    isin_line: Optional[str] = None
    registrar: Optional[str] = None
    advisor: Optional[str] = None
    folio_number: Optional[str] = None
    investor_name: Optional[str] = None
    nominees: List[str] = field(default_factory=list)
    opening_unit_balance: Optional[Decimal] = None
    closing_unit_balance: Optional[Decimal] = None
    total_cost_value: Optional[Decimal] = None
    market_value: Optional[Decimal] = None
    nav_on_date: Optional[Decimal] = None
    transactions: List[Transaction] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def get_administrative_transactions(self) -> List[Transaction]:
        return [t for t in self.transactions if t.is_administrative]

    def get_financial_transactions(self) -> List[Transaction]:
        return [t for t in self.transactions if not t.is_administrative]

    def to_dict(self) -> dict:
        return {
            "pan": self.pan,
            "kyc_status": self.kyc_status,
            "isin_line": self.isin_line,
            "scheme_name": self.scheme_name,
            "isin": self.isin,
            "folio_number": self.folio_number,
            "investor_name": self.investor_name,
            "nominees": list(self.nominees),
            "registrar": self.registrar,
            "advisor": self.advisor,
            "opening_unit_balance": _decimal_to_str(self.opening_unit_balance),
            "closing_unit_balance": _decimal_to_str(self.closing_unit_balance),
            "total_cost_value": _decimal_to_str(self.total_cost_value),
            "market_value": _decimal_to_str(self.market_value),
            "nav_on_date": _decimal_to_str(self.nav_on_date),
            "transactions": [t.to_dict() for t in self.transactions],
        }


@dataclass(frozen=True)
class FundSection:
    """
    Text window belonging to one fund house.

    Attributes:
        fund_name: Fund house name as listed in the portfolio summary
        text_window: Document text from the fund's anchor line up to the
            next fund anchor (or the end of the document)
        start_index: Character offset of the window in the document
        end_index: Character offset one past the end of the window
    """
    fund_name: str
    text_window: str
    start_index: int = 0
    end_index: int = 0


@dataclass
class FundTransactions:
    """Folios parsed out of one fund section."""
    fund_name: str
    folios: List[Folio] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "fund_name": self.fund_name,
            "folios": [f.to_dict() for f in self.folios],
        }


@dataclass
class Investor:
    """
    Investor contact details from the statement header.

    Attributes:
        name: Full name of the investor
        email: Email address (optional)
        phone: Mobile/phone number as printed (optional)
        address: Registered address, lines joined with ", " (optional)
    """
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    def __post_init__(self):
        """Normalize investor data."""
        if self.name:
            self.name = " ".join(self.name.split())
        if self.email:
            self.email = self.email.strip()


@dataclass
class FundSummary:
    """One row of the portfolio summary table."""
    fund_name: str
    cost_value: Decimal
    market_value: Decimal


@dataclass
class PortfolioSummary:
    """Fund houses listed in the statement's portfolio summary."""
    funds: List[FundSummary] = field(default_factory=list)
    total_cost_value: Optional[Decimal] = None
    total_market_value: Optional[Decimal] = None

    @property
    def fund_names(self) -> List[str]:
        return [f.fund_name for f in self.funds]

    def to_dict(self) -> dict:
        return {
            "funds": [
                {
                    "fund_name": f.fund_name,
                    "cost_value": str(f.cost_value),
                    "market_value": str(f.market_value),
                }
                for f in self.funds
            ],
            "total": {
                "cost_value": _decimal_to_str(self.total_cost_value),
                "market_value": _decimal_to_str(self.total_market_value),
            },
        }


@dataclass
class StatementPeriod:
    """Statement date range, kept as the printed DD-Mon-YYYY strings."""
    opening_date: Optional[str] = None
    closing_date: Optional[str] = None

    @property
    def full_range(self) -> Optional[str]:
        if self.opening_date and self.closing_date:
            return f"{self.opening_date} To {self.closing_date}"
        return None


@dataclass
class ValidationResult:
    """
    Result of validation checks on a parsed record.

    Attributes:
        is_valid: True if all critical validations pass
        errors: List of critical errors that reject the record
        warnings: List of non-critical issues (coercions, defaults)
    """
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add a critical error and mark result as invalid."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a non-critical warning."""
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> None:
        """Merge another validation result into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        if not other.is_valid:
            self.is_valid = False


@dataclass
class CASExtraction:
    """
    Complete extraction result for one statement.

    This is the top-level container: fund sections with their folios,
    statement header data, and every diagnostic raised along the way.
    """
    funds: List[FundTransactions] = field(default_factory=list)
    investor: Optional[Investor] = None
    period: Optional[StatementPeriod] = None
    portfolio: Optional[PortfolioSummary] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)
    source_file: Optional[str] = None

    @property
    def total_funds(self) -> int:
        return len(self.funds)

    @property
    def total_folios(self) -> int:
        return sum(len(f.folios) for f in self.funds)

    def all_folios(self) -> List[Folio]:
        return [folio for fund in self.funds for folio in fund.folios]

    def all_transactions(self) -> List[Transaction]:
        return [tx for folio in self.all_folios() for tx in folio.transactions]

    def get_folio(self, folio_number: str) -> Optional[Folio]:
        """Get the first folio with the given folio number."""
        for folio in self.all_folios():
            if folio.folio_number == folio_number:
                return folio
        return None

    def to_dict(self) -> dict:
        """
        Convert the extraction to a dictionary for JSON serialization.

        Returns:
            Dictionary representation of the complete extraction.
        """
        investor = self.investor
        period = self.period
        return {
            "investor": {
                "name": investor.name,
                "email": investor.email,
                "phone": investor.phone,
                "address": investor.address,
            } if investor else None,
            "period": {
                "opening_date": period.opening_date,
                "closing_date": period.closing_date,
                "full_range": period.full_range,
            } if period else None,
            "portfolio": self.portfolio.to_dict() if self.portfolio else None,
            "funds": [f.to_dict() for f in self.funds],
            "total_funds": self.total_funds,
            "total_folios": self.total_folios,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "source_file": self.source_file,
        }
