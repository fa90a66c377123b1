"""
Fund and folio segmentation for CAS statement text.

A statement lists each fund house on a line of its own (exactly as named in
the portfolio summary), followed by one block per folio that opens with a
``PAN:`` line. This module slices the document into per-fund windows and
each fund window into per-folio windows using those anchor lines.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from cas_extract.models import Diagnostic, DiagnosticKind, FundSection

logger = logging.getLogger(__name__)


class FundSectionLocator:
    """
    Splits a statement into fund sections.

    Each fund's window runs from the first exact-line occurrence of its name
    to the nearest later occurrence of any other fund name, or to the end of
    the document. Windows are returned ordered by position.
    """

    def __init__(self):
        """Initialize the locator."""
        self.diagnostics: List[Diagnostic] = []

    @staticmethod
    def _anchor_pattern(fund_name: str) -> re.Pattern:
        return re.compile(rf"^{re.escape(fund_name)}$", re.MULTILINE)

    def locate(self, text: str, fund_names: Sequence[str]) -> List[FundSection]:
        """
        Locate the text window of every fund.

        Args:
            text: Full statement text.
            fund_names: Fund house names from the portfolio summary.

        Returns:
            FundSection list ordered by first occurrence. Names that do not
            appear as a full line are skipped with a diagnostic.
        """
        self.diagnostics = []
        names = list(dict.fromkeys(n for n in fund_names if n))

        anchors: List[Tuple[str, List[int]]] = [
            (name, [m.start() for m in self._anchor_pattern(name).finditer(text)])
            for name in names
        ]

        sections: List[FundSection] = []
        for name, positions in anchors:
            if not positions:
                logger.warning(f'Fund "{name}" not found')
                self.diagnostics.append(
                    Diagnostic(
                        kind=DiagnosticKind.FUND_NOT_FOUND,
                        line_number=None,
                        raw_text=name,
                        message="Fund name not found as a full line",
                    )
                )
                continue

            start = positions[0]
            end = len(text)
            for other_name, other_positions in anchors:
                if other_name == name:
                    continue
                for position in other_positions:
                    if start < position < end:
                        end = position

            sections.append(
                FundSection(
                    fund_name=name,
                    text_window=text[start:end],
                    start_index=start,
                    end_index=end,
                )
            )

        sections.sort(key=lambda s: s.start_index)
        logger.info(f"Located {len(sections)} fund sections")
        return sections


class FolioSegmenter:
    """Splits a fund window into folio windows anchored on ``PAN:`` lines."""

    PAN_ANCHOR_PATTERN = re.compile(r"^PAN:\s*([A-Z]{5}\d{4}[A-Z])", re.MULTILINE)

    def segment(self, fund_window: str) -> List[str]:
        """
        Split a fund window into folio windows.

        Args:
            fund_window: Text of one fund section.

        Returns:
            Folio windows in order; text before the first PAN line is dropped.
        """
        starts = [m.start() for m in self.PAN_ANCHOR_PATTERN.finditer(fund_window)]
        if not starts:
            logger.debug("No PAN anchor found in fund window")
            return []

        ends = starts[1:] + [len(fund_window)]
        return [fund_window[s:e] for s, e in zip(starts, ends)]

    def find_pan(self, folio_window: str) -> Optional[str]:
        """Return the PAN of a folio window's anchor line."""
        match = self.PAN_ANCHOR_PATTERN.search(folio_window)
        return match.group(1) if match else None


def locate_fund_sections(text: str, fund_names: Sequence[str]) -> List[FundSection]:
    """
    Convenience function to locate fund sections.

    Args:
        text: Full statement text.
        fund_names: Fund house names.

    Returns:
        FundSection list ordered by position.
    """
    return FundSectionLocator().locate(text, fund_names)


def segment_folios(fund_window: str) -> List[str]:
    """
    Convenience function to split a fund window into folio windows.

    Args:
        fund_window: Text of one fund section.

    Returns:
        List of folio window texts.
    """
    return FolioSegmenter().segment(fund_window)
