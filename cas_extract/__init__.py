"""
Consolidated Account Statement (CAS) fund-transaction extractor.

Turns the text of a CAS into per-fund, per-folio identity, balance and
transaction records, with administrative (``***``) entries classified
separately from financial ones.
"""

from cas_extract.models import (
    CASExtraction,
    Diagnostic,
    DiagnosticKind,
    Folio,
    FundSection,
    FundTransactions,
    Transaction,
    TransactionType,
)
from cas_extract.main import extract_fund_transactions, parse_cas_pdf, parse_cas_text

__version__ = "1.0.0"
__all__ = [
    "CASExtraction",
    "Diagnostic",
    "DiagnosticKind",
    "Folio",
    "FundSection",
    "FundTransactions",
    "Transaction",
    "TransactionType",
    "extract_fund_transactions",
    "parse_cas_pdf",
    "parse_cas_text",
]
