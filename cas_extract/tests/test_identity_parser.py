"""Tests for the folio identity block parser."""

import pytest

from cas_extract.identity_parser import (
    IdentityBlockExtractor,
    extract_isin_info,
    normalize_whitespace,
)


SINGLE_LINE_FOLIO = """PAN: ANNPB9319H KYC: OK PAN: OK
G357-Bandhan Multi Cap Fund-Regular Plan-Growth (Non-Demat) - ISIN: INF194KB1CI6(Advisor: ARN-122530) Registrar : CAMS
Folio No: 5441223 / 12
ASHOK KUMAR
"""

TWO_LINE_FOLIO = """PAN: ANNPB9319H KYC: OK PAN: OK
G201-Bandhan Large & Mid Cap Fund-Regular Plan-Growth (Non
-Demat) - ISIN: INF194K01524(Advisor: ARN-111569)
Registrar : CAMS
Folio No: 2772992 / 35
ASHOK KUMAR
"""

THREE_LINE_FOLIO = """PAN: ANNPB9319H KYC: OK PAN: OK
B205RG-Aditya Birla Sun Life Small Cap Fund -
Growth-Regular Plan
(Non-Demat) - ISIN: INF209K01EN2(Advisor: ARN-111569) Registrar :
CFSPL
Folio No: 1039474707
ASHOK KUMAR
"""


class TestSingleLineBlock:
    """Tests for identity blocks printed on one line."""

    def test_fields(self):
        """Test every field of a single-line block."""
        block = extract_isin_info(SINGLE_LINE_FOLIO)

        assert block.isin == "INF194KB1CI6"
        assert block.scheme_name == "Bandhan Multi Cap Fund-Regular Plan-Growth (Non-Demat)"
        assert block.advisor == "ARN-122530"
        assert block.registrar == "CAMS"

    def test_isin_line_stops_at_folio(self):
        """Test the folio number is not part of the reconstructed line."""
        block = extract_isin_info(SINGLE_LINE_FOLIO)

        assert block.isin_line.startswith("G357-Bandhan")
        assert "Folio No:" not in block.isin_line
        assert "5441223" not in block.isin_line

    def test_missing_scheme_code(self):
        """Test a block without a scheme code prefix."""
        text = "Bandhan Multi Cap Fund - ISIN: INF194KB1CI6 Registrar : CAMS\nFolio No: 1\n"
        block = extract_isin_info(text)

        assert block.scheme_name == "Bandhan Multi Cap Fund"
        assert block.isin == "INF194KB1CI6"
        assert block.advisor is None


class TestWrappedBlock:
    """Tests for scheme names wrapped across lines."""

    def test_two_line_wrap(self):
        """Test a scheme name split before the ISIN line."""
        block = extract_isin_info(TWO_LINE_FOLIO)

        assert block.isin == "INF194K01524"
        assert block.scheme_name == "Bandhan Large & Mid Cap Fund-Regular Plan-Growth (Non -Demat)"
        assert block.advisor == "ARN-111569"
        assert block.registrar == "CAMS"

    def test_three_line_wrap(self):
        """Test a scheme name split across three lines with registrar overflow."""
        block = extract_isin_info(THREE_LINE_FOLIO)

        assert block.isin == "INF209K01EN2"
        assert block.scheme_name == (
            "Aditya Birla Sun Life Small Cap Fund - Growth-Regular Plan (Non-Demat)"
        )
        assert block.registrar == "CFSPL"
        assert "\n" not in block.isin_line

    @pytest.mark.parametrize("line_count", [1, 2, 3, 4, 5])
    def test_all_wrapped_lines_included(self, line_count):
        """Test no fragment of a wrapped scheme name is lost."""
        words = ["Alpha", "Beta", "Gamma", "Delta", "Epsilon"][:line_count]
        lines = ["PAN: ABCDE1234F KYC: OK PAN: OK", f"X123-{words[0]}"] + words[1:]
        lines[-1] += " - ISIN: INF123456789 Registrar : KFINTECH"
        lines.append("Folio No: 999")
        block = extract_isin_info("\n".join(lines))

        assert block.scheme_name == " ".join(words)
        assert block.isin == "INF123456789"
        assert block.registrar == "KFINTECH"

    def test_lookback_limit(self):
        """Test a scheme code too far above the ISIN line is not used."""
        extractor = IdentityBlockExtractor(lookback=1)
        text = "X1-Alpha\nBeta\nGamma - ISIN: INF123456789\nFolio No: 1"
        block = extractor.extract(text)

        assert block.scheme_name == "Gamma"
        assert block.isin_line.startswith("Gamma")


class TestNormalization:
    """Tests for whitespace normalization of the block."""

    def test_tabs_and_runs_collapsed(self):
        """Test tabs and repeated spaces collapse to one space."""
        text = "X12-Alpha \t Fund   -  ISIN:  INF123456789\t(Advisor:  ARN-1)\nFolio No: 1"
        block = extract_isin_info(text)

        assert block.isin_line == "X12-Alpha Fund - ISIN: INF123456789 (Advisor: ARN-1)"
        assert block.scheme_name == "Alpha Fund"
        assert block.isin == "INF123456789"
        assert block.advisor == "ARN-1"

    def test_normalize_whitespace(self):
        """Test the whitespace helper."""
        assert normalize_whitespace("  a \t b\n\nc  ") == "a b c"


class TestMissingBlock:
    """Tests for folios without an ISIN marker."""

    def test_no_isin_marker(self):
        """Test every field is None without an ISIN marker."""
        block = extract_isin_info("PAN: ABCDE1234F KYC: OK\nFolio No: 1\nASHOK KUMAR\n")

        assert block.isin_line is None
        assert block.scheme_name is None
        assert block.isin is None
        assert block.registrar is None
        assert block.advisor is None

    @pytest.mark.parametrize("text", [
        SINGLE_LINE_FOLIO,
        TWO_LINE_FOLIO,
        THREE_LINE_FOLIO,
        "Alpha Fund ISIN: INF123456789\nFolio No: 1",
        "ISIN: INF123456789\nFolio No: 1",
    ])
    def test_isin_implies_scheme_name(self, text):
        """Test a found ISIN always comes with a scheme name."""
        block = extract_isin_info(text)

        assert block.isin is not None
        assert block.scheme_name is not None


class TestPanAndKyc:
    """Tests for PAN and KYC extraction."""

    def test_pan_and_kyc(self):
        """Test PAN and KYC values."""
        pan, kyc = IdentityBlockExtractor().extract_pan_and_kyc(SINGLE_LINE_FOLIO)

        assert pan == "ANNPB9319H"
        assert kyc == "OK"

    def test_missing_pan_and_kyc(self):
        """Test missing PAN and KYC."""
        assert IdentityBlockExtractor().extract_pan_and_kyc("Folio No: 1") == (None, None)
