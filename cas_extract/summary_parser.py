"""
Statement header parsers for CAS text.

These supply what the fund/folio parsers need from outside the folio blocks:
the fund house names listed in the portfolio summary, the statement period,
and the investor's contact details printed at the top of the statement.
"""

import logging
import re
from typing import List, Optional

from cas_extract.models import FundSummary, Investor, PortfolioSummary, StatementPeriod
from cas_extract.tokens import parse_numeric_value

logger = logging.getLogger(__name__)

HEADER_SCAN_LINES = 50


class PortfolioSummaryParser:
    """
    Parser for the ``PORTFOLIO SUMMARY`` table.

    Rows look like ``HDFC Mutual Fund 1,00,000.00 1,25,000.00`` (cost value,
    market value); the table ends at the first ``Date ... Transaction`` header.
    """

    SECTION_MARKER = "PORTFOLIO SUMMARY"
    FUND_ROW_PATTERN = re.compile(r"^(.*?Mutual Fund)\s+([\d,]+\.?\d*)\s+([\d,]+\.?\d*)$")
    TOTAL_ROW_PATTERN = re.compile(r"^Total\s+([\d,]+\.\d{2})\s+([\d,]+\.\d{2})")

    def parse(self, text: str) -> PortfolioSummary:
        """
        Parse the portfolio summary table.

        Args:
            text: Full statement text.

        Returns:
            PortfolioSummary; empty when the table is absent.
        """
        summary = PortfolioSummary()
        in_section = False

        for raw_line in text.split("\n"):
            line = raw_line.strip()

            if self.SECTION_MARKER in line:
                in_section = True
                continue
            if "Date" in line and "Transaction" in line:
                break
            if not in_section:
                continue

            if line.startswith("Total "):
                total_match = self.TOTAL_ROW_PATTERN.match(line)
                if total_match:
                    summary.total_cost_value = parse_numeric_value(total_match.group(1))
                    summary.total_market_value = parse_numeric_value(total_match.group(2))
                continue

            fund_match = self.FUND_ROW_PATTERN.match(line)
            if fund_match:
                cost = parse_numeric_value(fund_match.group(2))
                market = parse_numeric_value(fund_match.group(3))
                if cost is None or market is None:
                    logger.warning(f"Unparseable portfolio summary row: {line!r}")
                    continue
                summary.funds.append(
                    FundSummary(
                        fund_name=fund_match.group(1).strip(),
                        cost_value=cost,
                        market_value=market,
                    )
                )

        logger.info(f"Extracted {len(summary.funds)} funds from portfolio summary")
        return summary


class StatementPeriodParser:
    """Parser for the ``Consolidated Account Statement`` date range."""

    PERIOD_PATTERN = re.compile(
        r"Consolidated Account Statement[\",\s]+(\d{2}-[A-Za-z]{3}-\d{4})\s+to\s+(\d{2}-[A-Za-z]{3}-\d{4})",
        re.IGNORECASE,
    )

    def parse(self, text: str) -> StatementPeriod:
        match = self.PERIOD_PATTERN.search(text)
        if not match:
            logger.info("Statement date range not found")
            return StatementPeriod()
        return StatementPeriod(opening_date=match.group(1), closing_date=match.group(2))


class InvestorInfoParser:
    """
    Parser for the investor contact block at the top of the statement.

    The block reads ``Email Id: ...`` then the investor name, address lines,
    and ``Mobile: ...``.
    """

    EMAIL_PATTERN = re.compile(r"Email\s*(?:Id)?:\s*([^\s]+@[^\s]+)", re.IGNORECASE)
    PHONE_PATTERN = re.compile(r"(?:Mobile|Phone):\s*([+\d\s\-()]+)", re.IGNORECASE)
    NAME_EXCLUDES = ("Email", "Mobile", "Page", "Statement")
    ADDRESS_EXCLUDES = ("This Consolidated", "Page ")

    def __init__(self, scan_lines: int = HEADER_SCAN_LINES):
        """
        Initialize the parser.

        Args:
            scan_lines: Number of leading lines searched for the block.
        """
        self.scan_lines = scan_lines

    def parse(self, text: str) -> Investor:
        """
        Parse investor contact details.

        Args:
            text: Full statement text.

        Returns:
            Investor; fields not found are None.
        """
        lines = [line.strip() for line in text.split("\n")[: self.scan_lines]]
        email: Optional[str] = None
        phone: Optional[str] = None
        name: Optional[str] = None
        address: Optional[str] = None

        for line in lines:
            if "Email Id:" in line or "Email:" in line:
                email_match = self.EMAIL_PATTERN.search(line)
                if email_match:
                    email = email_match.group(1).strip()
            if "Mobile:" in line or "Phone:" in line:
                phone_match = self.PHONE_PATTERN.search(line)
                if phone_match:
                    phone = phone_match.group(1).strip()

        for i, line in enumerate(lines):
            if "Email Id:" not in line:
                continue
            name_index = self._find_name_line(lines, i + 1)
            if name_index is not None:
                name = lines[name_index]
                address = self._collect_address(lines, name_index + 1)
            break

        investor = Investor(name=name, email=email, phone=phone, address=address)
        logger.info(f"Investor name: {investor.name or 'Not found'}")
        return investor

    def _find_name_line(self, lines: List[str], start: int) -> Optional[int]:
        for j in range(start, min(start + 4, len(lines))):
            candidate = lines[j]
            if (
                candidate
                and not any(x in candidate for x in self.NAME_EXCLUDES)
                and not candidate[0].isdigit()
                and 3 < len(candidate) < 100
            ):
                return j
        return None

    def _collect_address(self, lines: List[str], start: int) -> Optional[str]:
        address_lines: List[str] = []
        for k in range(start, min(start + 9, len(lines))):
            line = lines[k]
            if "Mobile:" in line:
                break
            if len(line) > 2 and not any(x in line for x in self.ADDRESS_EXCLUDES):
                address_lines.append(line)
        return ", ".join(address_lines) if address_lines else None


def parse_portfolio_summary(text: str) -> PortfolioSummary:
    """
    Convenience function to parse the portfolio summary.

    Args:
        text: Full statement text.

    Returns:
        PortfolioSummary with fund names and values.
    """
    return PortfolioSummaryParser().parse(text)


def parse_statement_period(text: str) -> StatementPeriod:
    """Convenience function to parse the statement date range."""
    return StatementPeriodParser().parse(text)


def parse_investor_info(text: str) -> Investor:
    """Convenience function to parse the investor contact block."""
    return InvestorInfoParser().parse(text)
