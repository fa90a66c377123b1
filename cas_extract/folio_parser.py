"""
Folio metadata parser for CAS folio windows.

This module pulls the folio number, investor name, nominees and the
balance/valuation lines that bracket a folio's transaction history.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from cas_extract.tokens import parse_numeric_value

logger = logging.getLogger(__name__)


@dataclass
class FolioMetadata:
    """
    Folio-level fields outside the identity block.

    Attributes:
        folio_number: Folio number as printed (e.g. "2208952 / 87")
        investor_name: Name on the line following the folio number
        nominees: Nominee names in printed order
        opening_unit_balance: Units at the start of the statement period
        closing_unit_balance: Units at the end of the statement period
        total_cost_value: Total cost of the closing units
        market_value: Market value on the valuation date
        nav_on_date: NAV on the valuation date
    """
    folio_number: Optional[str] = None
    investor_name: Optional[str] = None
    nominees: List[str] = field(default_factory=list)
    opening_unit_balance: Optional[Decimal] = None
    closing_unit_balance: Optional[Decimal] = None
    total_cost_value: Optional[Decimal] = None
    market_value: Optional[Decimal] = None
    nav_on_date: Optional[Decimal] = None


class FolioMetadataExtractor:
    """Extracts folio number, investor, nominees and balances."""

    FOLIO_MARKER = "Folio No:"
    NOMINEE_MARKER = "Nominee"

    FOLIO_PATTERN = re.compile(r"Folio No:\s*([\d/ \t]+)")
    NOMINEE_PATTERN = re.compile(
        r"Nominee\s+\d+:\s*([A-Z][A-Z\s]+?)(?=\s+Nominee\s+\d+:|$)"
    )

    OPENING_PATTERN = re.compile(r"Opening Unit Balance:\s*([\d,]+\.?\d*)")
    CLOSING_PATTERN = re.compile(r"Closing Unit Balance:\s*([\d,]+\.?\d*)")
    COST_PATTERN = re.compile(r"Total Cost Value:\s*([\d,]+\.?\d*)")
    MARKET_VALUE_PATTERN = re.compile(r"Market Value on.*?INR\s*([\d,]+\.?\d*)")
    NAV_PATTERN = re.compile(r"NAV on.*?INR\s*([\d,]+\.?\d*)")

    def extract(self, folio_text: str) -> FolioMetadata:
        """
        Extract folio metadata from a folio window.

        Args:
            folio_text: Text of a single folio window.

        Returns:
            FolioMetadata; missing fields are None.
        """
        lines = folio_text.split("\n")
        metadata = FolioMetadata(
            folio_number=self._extract_folio_number(folio_text),
            investor_name=self._extract_investor_name(lines),
            nominees=self._extract_nominees(lines),
        )
        self._extract_balances(folio_text, metadata)
        return metadata

    def _extract_folio_number(self, folio_text: str) -> Optional[str]:
        match = self.FOLIO_PATTERN.search(folio_text)
        if not match:
            return None
        return match.group(1).strip() or None

    def _extract_investor_name(self, lines: List[str]) -> Optional[str]:
        """The investor name is printed on the line after ``Folio No:``."""
        for i, line in enumerate(lines):
            if self.FOLIO_MARKER in line:
                if i + 1 < len(lines):
                    return lines[i + 1].strip() or None
                return None
        return None

    def _extract_nominees(self, lines: List[str]) -> List[str]:
        """Nominees come from the first line mentioning a nominee."""
        nominees: List[str] = []
        for line in lines:
            if self.NOMINEE_MARKER not in line:
                continue
            for match in self.NOMINEE_PATTERN.finditer(line.strip()):
                name = match.group(1).strip()
                if name and not name.endswith(":"):
                    nominees.append(name)
            break
        return nominees

    def _extract_balances(self, folio_text: str, metadata: FolioMetadata) -> None:
        metadata.opening_unit_balance = self._search_number(self.OPENING_PATTERN, folio_text)
        metadata.closing_unit_balance = self._search_number(self.CLOSING_PATTERN, folio_text)
        metadata.total_cost_value = self._search_number(self.COST_PATTERN, folio_text)
        metadata.market_value = self._search_number(self.MARKET_VALUE_PATTERN, folio_text)
        metadata.nav_on_date = self._search_number(self.NAV_PATTERN, folio_text)

    @staticmethod
    def _search_number(pattern: re.Pattern, text: str) -> Optional[Decimal]:
        match = pattern.search(text)
        return parse_numeric_value(match.group(1)) if match else None


def extract_folio_metadata(folio_text: str) -> FolioMetadata:
    """
    Convenience function to extract folio metadata.

    Args:
        folio_text: Text of a single folio window.

    Returns:
        FolioMetadata for the folio.
    """
    return FolioMetadataExtractor().extract(folio_text)
