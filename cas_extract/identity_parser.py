"""
Identity block parser for CAS folio windows.

Each folio opens with a ``PAN:`` line followed by the scheme identity block::

    PAN: ANNPB9319H KYC: OK PAN: OK
    G201-Bandhan Large & Mid Cap Fund-Regular Plan-Growth ( Formerly ... (Non
    -Demat) - ISIN: INF194K01524(Advisor: ARN-111569)
    Registrar : CAMS
    Folio No: 2772992 / 35

The scheme name may wrap across several physical lines, so the block is
reassembled around the ``ISIN:`` marker before the fields are pulled out.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

ISIN_LOOKBACK_LINES = 5
ISIN_LOOKAHEAD_LINES = 10


@dataclass
class IdentityBlock:
    """
    Fields reconstructed from a folio's ISIN block.

    ``scheme_name`` is always set when ``isin`` is set, since both come from
    the same normalized line.
    """
    isin_line: Optional[str] = None
    scheme_name: Optional[str] = None
    isin: Optional[str] = None
    registrar: Optional[str] = None
    advisor: Optional[str] = None


class IdentityBlockExtractor:
    """Reassembles and parses the multi-line scheme/ISIN block of a folio."""

    ISIN_MARKER = "ISIN:"
    FOLIO_MARKER = "Folio No:"
    REGISTRAR_MARKER = "Registrar"

    # Scheme codes look like "G201-", "B205RG-", "X123-"
    SCHEME_CODE_PATTERN = re.compile(r"^[A-Z]+\d+[A-Z]*-")
    ISIN_PATTERN = re.compile(r"ISIN:\s*([A-Z0-9]+)")
    SCHEME_NAME_PATTERN = re.compile(r"^(.+?)\s*-\s*ISIN:")
    ADVISOR_PATTERN = re.compile(r"Advisor:\s*([A-Z0-9-]+)")
    REGISTRAR_PATTERN = re.compile(r"Registrar\s*:\s*(.+?)(?:\s+Folio|\s*$)")
    PAN_PATTERN = re.compile(r"PAN:\s*([A-Z0-9]+)")
    KYC_PATTERN = re.compile(r"KYC:\s*([A-Z]+)")

    def __init__(
        self,
        lookback: int = ISIN_LOOKBACK_LINES,
        lookahead: int = ISIN_LOOKAHEAD_LINES,
    ):
        """
        Initialize the extractor.

        Args:
            lookback: Lines above the ISIN line searched for the scheme code.
            lookahead: Maximum lines after the ISIN line appended to the block.
        """
        self.lookback = lookback
        self.lookahead = lookahead

    def extract(self, folio_text: str) -> IdentityBlock:
        """
        Extract scheme name, ISIN, registrar and advisor from a folio window.

        Args:
            folio_text: Text of a single folio window.

        Returns:
            IdentityBlock; all fields None when no ISIN marker is present.
        """
        lines = folio_text.split("\n")

        isin_index = self._find_isin_line(lines)
        if isin_index is None:
            logger.warning("ISIN marker not found in folio text")
            return IdentityBlock()

        isin_line = self.reconstruct_line(lines, isin_index)

        isin_match = self.ISIN_PATTERN.search(isin_line)
        advisor_match = self.ADVISOR_PATTERN.search(isin_line)
        registrar_match = self.REGISTRAR_PATTERN.search(isin_line)

        block = IdentityBlock(
            isin_line=isin_line,
            scheme_name=self._extract_scheme_name(isin_line),
            isin=isin_match.group(1) if isin_match else None,
            registrar=registrar_match.group(1).strip() if registrar_match else None,
            advisor=advisor_match.group(1).strip() if advisor_match else None,
        )
        logger.debug(f"Identity block: isin={block.isin} scheme={block.scheme_name}")
        return block

    def _find_isin_line(self, lines: List[str]) -> Optional[int]:
        for i, line in enumerate(lines):
            if self.ISIN_MARKER in line:
                return i
        return None

    def find_scheme_start(self, lines: List[str], isin_index: int) -> int:
        """
        Find the first line of a wrapped scheme name.

        Scans upward from the ISIN line for a line starting with a scheme
        code; falls back to the ISIN line itself.
        """
        for i in range(isin_index, max(0, isin_index - self.lookback) - 1, -1):
            if self.SCHEME_CODE_PATTERN.match(lines[i].strip()):
                return i
        return isin_index

    def reconstruct_line(self, lines: List[str], isin_index: int) -> str:
        """
        Join the identity block into one whitespace-normalized line.

        Args:
            lines: Folio window lines.
            isin_index: Index of the line holding the ISIN marker.

        Returns:
            The block as a single line with whitespace runs collapsed.
        """
        start = self.find_scheme_start(lines, isin_index)
        parts = [lines[i].strip() for i in range(start, isin_index + 1)]

        end = min(isin_index + self.lookahead, len(lines))
        for i in range(isin_index + 1, end):
            line = lines[i]
            if self.FOLIO_MARKER in line:
                break
            if self.REGISTRAR_MARKER in line and any(
                self.REGISTRAR_MARKER in p for p in parts
            ):
                break
            parts.append(line.strip())

        return normalize_whitespace(" ".join(parts))

    def _extract_scheme_name(self, isin_line: str) -> Optional[str]:
        """Scheme name is the text before ``- ISIN:`` minus the scheme code."""
        match = self.SCHEME_NAME_PATTERN.search(isin_line)
        if match:
            full_name = match.group(1).strip()
        elif self.ISIN_MARKER in isin_line:
            # "ISIN:" without the " - " separator; keep whatever precedes it
            full_name = isin_line.split(self.ISIN_MARKER, 1)[0].strip().rstrip("-").strip()
        else:
            return None
        return self.SCHEME_CODE_PATTERN.sub("", full_name, count=1).strip()

    def extract_pan_and_kyc(self, folio_text: str) -> Tuple[Optional[str], Optional[str]]:
        """
        Extract the PAN and KYC status from a folio window.

        Returns:
            Tuple of (pan, kyc_status); either may be None.
        """
        pan_match = self.PAN_PATTERN.search(folio_text)
        kyc_match = self.KYC_PATTERN.search(folio_text)
        return (
            pan_match.group(1) if pan_match else None,
            kyc_match.group(1) if kyc_match else None,
        )


def normalize_whitespace(text: str) -> str:
    """Collapse runs of spaces, tabs and newlines into single spaces."""
    return re.sub(r"\s+", " ", text).strip()


def extract_isin_info(folio_text: str) -> IdentityBlock:
    """
    Convenience function to extract the identity block of a folio.

    Args:
        folio_text: Text of a single folio window.

    Returns:
        IdentityBlock with the reconstructed fields.
    """
    return IdentityBlockExtractor().extract(folio_text)
