"""
Main entry point for the CAS fund-transaction extractor.

This module provides the CLI interface and orchestrates the pipeline from
statement text through fund/folio segmentation to per-folio identity,
balance and transaction records.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from cas_extract.extractor import PDFExtractor, PDFPasswordError
from cas_extract.folio_parser import FolioMetadataExtractor
from cas_extract.identity_parser import IdentityBlockExtractor
from cas_extract.models import (
    CASExtraction,
    Diagnostic,
    DiagnosticKind,
    Folio,
    FundTransactions,
)
from cas_extract.section_detector import FolioSegmenter, FundSectionLocator
from cas_extract.summary_parser import (
    InvestorInfoParser,
    PortfolioSummaryParser,
    StatementPeriodParser,
)
from cas_extract.transactions_parser import TransactionsParser

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class CASExtractor:
    """
    Main extractor for Consolidated Account Statement text.

    This class orchestrates the pipeline:
    1. Locate fund sections by fund-house anchor lines
    2. Split each fund section into folio windows on PAN lines
    3. Extract identity, metadata and transactions per folio
    4. Collect diagnostics from every stage

    Nothing here raises on malformed content: a folio that cannot be parsed
    is recorded as a diagnostic and the rest of the document is still read.
    """

    def __init__(self):
        """Initialize the extractor and its stage parsers."""
        self.locator = FundSectionLocator()
        self.segmenter = FolioSegmenter()
        self.identity_extractor = IdentityBlockExtractor()
        self.metadata_extractor = FolioMetadataExtractor()

    def extract_fund_transactions(
        self, text: str, fund_names: Sequence[str]
    ) -> CASExtraction:
        """
        Extract per-fund folios and transactions.

        Args:
            text: Full statement text.
            fund_names: Fund house names from the portfolio summary.

        Returns:
            CASExtraction with funds in document order.

        Raises:
            TypeError: If ``text`` is not a string.
        """
        if not isinstance(text, str):
            raise TypeError(f"Statement text must be str, got {type(text).__name__}")

        text = text.replace("\r\n", "\n").replace("\r", "\n")
        logger.info(f"Starting fund transaction extraction for {len(fund_names)} funds")

        extraction = CASExtraction()
        sections = self.locator.locate(text, fund_names)
        extraction.diagnostics.extend(self.locator.diagnostics)

        for section in sections:
            fund = FundTransactions(fund_name=section.fund_name)
            for folio_text in self.segmenter.segment(section.text_window):
                folio = self.parse_folio(folio_text)
                if folio is None:
                    extraction.diagnostics.append(
                        Diagnostic(
                            kind=DiagnosticKind.FOLIO_FAILED,
                            line_number=None,
                            raw_text=folio_text.split("\n", 1)[0],
                            message=f"Folio in {section.fund_name} could not be parsed",
                        )
                    )
                    continue
                fund.folios.append(folio)
                extraction.diagnostics.extend(folio.diagnostics)
            logger.info(f"  - {fund.fund_name}: {len(fund.folios)} folios")
            extraction.funds.append(fund)

        logger.info(
            f"Parsed {extraction.total_folios} folios across {extraction.total_funds} funds"
        )
        return extraction

    def parse_folio(self, folio_text: str) -> Optional[Folio]:
        """
        Build a Folio from a single folio window.

        Args:
            folio_text: Text of one folio window, starting at its PAN line.

        Returns:
            Folio, or None if the window could not be parsed at all.
        """
        try:
            return self._build_folio(folio_text)
        except Exception:
            logger.exception("Failed to parse folio")
            return None

    def _build_folio(self, folio_text: str) -> Folio:
        pan, kyc_status = self.identity_extractor.extract_pan_and_kyc(folio_text)
        identity = self.identity_extractor.extract(folio_text)
        metadata = self.metadata_extractor.extract(folio_text)

        transactions_parser = TransactionsParser()
        transactions = transactions_parser.parse(folio_text)

        folio = Folio(
            pan=self.segmenter.find_pan(folio_text) or pan,
            kyc_status=kyc_status,
            scheme_name=identity.scheme_name,
            isin=identity.isin,
            isin_line=identity.isin_line,
            registrar=identity.registrar,
            advisor=identity.advisor,
            folio_number=metadata.folio_number,
            investor_name=metadata.investor_name,
            nominees=metadata.nominees,
            opening_unit_balance=metadata.opening_unit_balance,
            closing_unit_balance=metadata.closing_unit_balance,
            total_cost_value=metadata.total_cost_value,
            market_value=metadata.market_value,
            nav_on_date=metadata.nav_on_date,
            transactions=transactions,
        )

        if identity.isin_line is None:
            folio.diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.MISSING_ISIN_BLOCK,
                    line_number=None,
                    raw_text=folio_text.split("\n", 1)[0],
                    message="ISIN marker not found in folio",
                )
            )
        folio.diagnostics.extend(transactions_parser.diagnostics)

        logger.debug(
            f"Folio {folio.folio_number}: {len(folio.transactions)} transactions, "
            f"{len(folio.diagnostics)} diagnostics"
        )
        return folio

    def parse_text(
        self,
        text: str,
        fund_names: Optional[Sequence[str]] = None,
    ) -> CASExtraction:
        """
        Parse a complete statement text, header included.

        Args:
            text: Full statement text.
            fund_names: Fund house names; read from the portfolio summary
                when not given.

        Returns:
            CASExtraction with header data and per-fund folios.
        """
        if not isinstance(text, str):
            raise TypeError(f"Statement text must be str, got {type(text).__name__}")

        portfolio = PortfolioSummaryParser().parse(text)
        if fund_names is None:
            fund_names = portfolio.fund_names

        extraction = self.extract_fund_transactions(text, fund_names)
        extraction.portfolio = portfolio
        extraction.period = StatementPeriodParser().parse(text)
        extraction.investor = InvestorInfoParser().parse(text)
        return extraction


def extract_fund_transactions(text: str, fund_names: Sequence[str]) -> CASExtraction:
    """
    Extract per-fund folios and transactions from statement text.

    Args:
        text: Full statement text.
        fund_names: Fund house names from the portfolio summary.

    Returns:
        CASExtraction with funds in document order.
    """
    return CASExtractor().extract_fund_transactions(text, fund_names)


def parse_cas_text(
    text: str, fund_names: Optional[Sequence[str]] = None
) -> CASExtraction:
    """
    Parse statement text, reading fund names from its portfolio summary.

    This is the main entry point for programmatic use on pre-extracted text.

    Args:
        text: Full statement text.
        fund_names: Optional explicit fund house names.

    Returns:
        CASExtraction with all parsed data.
    """
    return CASExtractor().parse_text(text, fund_names)


def parse_cas_pdf(
    pdf_path: str,
    password: Optional[str] = None,
    fund_names: Optional[Sequence[str]] = None,
) -> CASExtraction:
    """
    Parse a CAS statement PDF.

    Args:
        pdf_path: Path to the CAS PDF file.
        password: Optional password for encrypted PDFs.
        fund_names: Optional explicit fund house names.

    Returns:
        CASExtraction with all parsed data.
    """
    logger.info(f"Starting CAS parsing: {pdf_path}")
    text = PDFExtractor(password=password).extract(pdf_path).get_all_text()
    extraction = parse_cas_text(text, fund_names)
    extraction.source_file = str(pdf_path)
    return extraction


def export_to_json(extraction: CASExtraction, output_path: Optional[str] = None) -> str:
    """
    Export an extraction to JSON.

    Args:
        extraction: Parsed statement.
        output_path: Optional path to write JSON file.

    Returns:
        JSON string representation.
    """
    json_data = extraction.to_dict()
    json_str = json.dumps(json_data, indent=2, ensure_ascii=False)

    if output_path:
        Path(output_path).write_text(json_str, encoding="utf-8")
        logger.info(f"Exported JSON to: {output_path}")

    return json_str


def _print_diagnostics(diagnostics: List[Diagnostic]) -> None:
    if not diagnostics:
        print("Diagnostics: none")
        return
    print(f"Diagnostics: {len(diagnostics)}")
    for d in diagnostics:
        location = f"line {d.line_number}" if d.line_number is not None else "-"
        print(f"  - [{d.kind.value}] {location}: {d.raw_text[:80]!r} {d.message}")


def main(argv: Optional[List[str]] = None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Extract per-folio transactions from Consolidated Account Statements",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s statement.pdf
  %(prog)s statement.pdf -o output.json
  %(prog)s statement.pdf --password mypass -v
  %(prog)s statement.txt --text --fund "HDFC Mutual Fund"
        """,
    )
    parser.add_argument(
        "input_file",
        help="Path to the CAS PDF (or text file with --text)",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output JSON file path (default: stdout)",
    )
    parser.add_argument(
        "-p", "--password",
        help="Password for encrypted PDF",
    )
    parser.add_argument(
        "--text",
        action="store_true",
        help="Treat the input as pre-extracted statement text",
    )
    parser.add_argument(
        "--fund",
        action="append",
        dest="funds",
        metavar="NAME",
        help="Fund house name to extract (repeatable; default: portfolio summary)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress all output except errors",
    )
    parser.add_argument(
        "--diagnostics-only",
        action="store_true",
        help="Only list diagnostics, don't output full JSON",
    )

    args = parser.parse_args(argv)

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        if args.text:
            text = Path(args.input_file).read_text(encoding="utf-8")
            extraction = parse_cas_text(text, args.funds)
            extraction.source_file = args.input_file
        else:
            extraction = parse_cas_pdf(args.input_file, password=args.password, fund_names=args.funds)

        if args.diagnostics_only:
            _print_diagnostics(extraction.diagnostics)
            sys.exit(0)

        json_output = export_to_json(extraction, args.output)

        if not args.output:
            print(json_output)

        # Print summary to stderr
        if not args.quiet:
            print(
                f"\nParsed: {extraction.total_funds} funds, "
                f"{extraction.total_folios} folios, "
                f"{len(extraction.all_transactions())} transactions",
                file=sys.stderr,
            )
            if extraction.diagnostics:
                print(
                    f"Diagnostics: {len(extraction.diagnostics)}",
                    file=sys.stderr,
                )

    except PDFPasswordError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.exception("Failed to parse CAS statement")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
