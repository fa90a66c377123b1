"""Tests for fund and folio segmentation."""

from cas_extract.models import DiagnosticKind
from cas_extract.section_detector import (
    FolioSegmenter,
    FundSectionLocator,
    locate_fund_sections,
    segment_folios,
)


STATEMENT = """PORTFOLIO SUMMARY
HDFC Mutual Fund 1,000.00 1,200.00
Bandhan Mutual Fund 2,000.00 2,100.00
Bandhan Mutual Fund
PAN: ANNPB9319H KYC: OK PAN: OK
G357-Bandhan Multi Cap Fund - ISIN: INF194KB1CI6
Folio No: 1
PAN: ANNPB9319H KYC: OK PAN: OK
G201-Bandhan Large & Mid Cap Fund - ISIN: INF194K01524
Folio No: 2
HDFC Mutual Fund
PAN: ANNPB9319H KYC: OK PAN: OK
H123-HDFC Flexi Cap Fund - ISIN: INF179K01608
Folio No: 3
"""


class TestFundSectionLocator:
    """Tests for FundSectionLocator."""

    def test_sections_in_document_order(self):
        """Test windows are ordered by position, not by the name list."""
        sections = locate_fund_sections(STATEMENT, ["HDFC Mutual Fund", "Bandhan Mutual Fund"])

        assert [s.fund_name for s in sections] == ["Bandhan Mutual Fund", "HDFC Mutual Fund"]

    def test_window_boundaries(self):
        """Test each window ends at the next fund anchor."""
        sections = locate_fund_sections(STATEMENT, ["Bandhan Mutual Fund", "HDFC Mutual Fund"])
        bandhan, hdfc = sections

        assert bandhan.text_window.startswith("Bandhan Mutual Fund\nPAN:")
        assert "Folio No: 2" in bandhan.text_window
        assert "Folio No: 3" not in bandhan.text_window
        assert hdfc.text_window.startswith("HDFC Mutual Fund\nPAN:")
        assert hdfc.end_index == len(STATEMENT)
        assert bandhan.end_index == hdfc.start_index

    def test_summary_rows_are_not_anchors(self):
        """Test a name followed by values on the same line is not an anchor."""
        sections = locate_fund_sections(STATEMENT, ["HDFC Mutual Fund"])

        assert "PORTFOLIO SUMMARY" not in sections[0].text_window
        assert sections[0].text_window.startswith("HDFC Mutual Fund\nPAN:")

    def test_missing_fund(self):
        """Test an absent fund is reported and skipped."""
        locator = FundSectionLocator()
        sections = locator.locate(STATEMENT, ["Bandhan Mutual Fund", "Quant Mutual Fund"])

        assert [s.fund_name for s in sections] == ["Bandhan Mutual Fund"]
        assert [d.kind for d in locator.diagnostics] == [DiagnosticKind.FUND_NOT_FOUND]
        assert locator.diagnostics[0].raw_text == "Quant Mutual Fund"

    def test_duplicate_and_empty_names(self):
        """Test repeated and empty names are ignored."""
        sections = locate_fund_sections(
            STATEMENT, ["HDFC Mutual Fund", "", "HDFC Mutual Fund"]
        )

        assert len(sections) == 1

    def test_single_fund_runs_to_end(self):
        """Test a lone fund window runs to the end of the text."""
        sections = locate_fund_sections(STATEMENT, ["Bandhan Mutual Fund"])

        assert "Folio No: 3" in sections[0].text_window

    def test_regex_characters_in_name(self):
        """Test names are matched literally."""
        text = "A+B (India) Mutual Fund\nPAN: ABCDE1234F\n"
        sections = locate_fund_sections(text, ["A+B (India) Mutual Fund"])

        assert len(sections) == 1

    def test_no_names(self):
        """Test an empty name list."""
        assert locate_fund_sections(STATEMENT, []) == []


class TestFolioSegmenter:
    """Tests for FolioSegmenter."""

    def test_segment(self):
        """Test a window is split at every PAN line."""
        bandhan = locate_fund_sections(STATEMENT, ["Bandhan Mutual Fund", "HDFC Mutual Fund"])[0]
        folios = segment_folios(bandhan.text_window)

        assert len(folios) == 2
        assert all(f.startswith("PAN: ANNPB9319H") for f in folios)
        assert "Folio No: 1" in folios[0]
        assert "Folio No: 2" in folios[1]

    def test_no_pan(self):
        """Test a window without PAN lines has no folios."""
        assert segment_folios("HDFC Mutual Fund\nFolio No: 3\n") == []

    def test_indented_pan_is_not_anchor(self):
        """Test PAN must start the line."""
        assert segment_folios("  PAN: ABCDE1234F\n") == []

    def test_find_pan(self):
        """Test reading the PAN of a folio window."""
        segmenter = FolioSegmenter()

        assert segmenter.find_pan("PAN: ANNPB9319H KYC: OK") == "ANNPB9319H"
        assert segmenter.find_pan("Folio No: 1") is None
