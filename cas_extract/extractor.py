"""
PDF text extraction for the CAS fund-transaction extractor.

This module turns a (possibly password-protected) statement PDF into the raw
multi-page text the parsers work on, using pdfplumber. Password problems are
raised as their own exception types so callers can ask the user for a
password or report a wrong one.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import pdfplumber
from pdfminer.pdfdocument import PDFPasswordIncorrect

logger = logging.getLogger(__name__)


class PDFPasswordError(ValueError):
    """Base class for password problems opening a statement PDF."""


class PasswordRequiredError(PDFPasswordError):
    """The PDF is encrypted and no password was supplied."""


class IncorrectPasswordError(PDFPasswordError):
    """The supplied password does not open the PDF."""


@dataclass
class PageContent:
    """
    Represents extracted content from a single PDF page.

    Attributes:
        page_number: 1-indexed page number
        raw_text: Page text with line breaks and tabs as extracted
    """
    page_number: int
    raw_text: str = ""

    @property
    def lines(self) -> List[str]:
        return self.raw_text.split("\n") if self.raw_text else []


@dataclass
class ExtractedDocument:
    """
    Represents the complete extracted content from a PDF document.

    Attributes:
        pages: List of page contents
        total_pages: Total number of pages in the document
        source_path: Path to the source PDF file
    """
    pages: List[PageContent] = field(default_factory=list)
    total_pages: int = 0
    source_path: Optional[str] = None

    def get_all_text(self) -> str:
        """
        Get complete text from all pages.

        Returns:
            Page texts joined with newlines, in page order.
        """
        return "\n".join(page.raw_text for page in self.pages)


def _is_password_error(error: BaseException) -> bool:
    """pdfplumber may wrap pdfminer's password error in its own exception."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, PDFPasswordIncorrect):
            return True
        if any(isinstance(arg, PDFPasswordIncorrect) for arg in current.args):
            return True
        message = str(current).lower()
        if "password" in message or "encrypted" in message:
            return True
        current = current.__cause__ or current.__context__
    return False


class PDFExtractor:
    """
    Extracts text content from CAS statement PDFs.

    This class uses pdfplumber for text extraction and keeps each page's
    line structure, which the line-oriented parsers depend on.
    """

    def __init__(self, password: Optional[str] = None):
        """
        Initialize the PDF extractor.

        Args:
            password: Optional password for encrypted PDFs.
        """
        self.password = password

    def extract(self, pdf_path: Union[str, Path]) -> ExtractedDocument:
        """
        Extract text content from a PDF file.

        Args:
            pdf_path: Path to the PDF file.

        Returns:
            ExtractedDocument containing all extracted text.

        Raises:
            FileNotFoundError: If the PDF file does not exist.
            ValueError: If the file is not a PDF.
            PasswordRequiredError: If the PDF is encrypted and no password was given.
            IncorrectPasswordError: If the given password is wrong.
        """
        pdf_path = Path(pdf_path)

        if not pdf_path.exists():
            raise FileNotFoundError(f"PDF file not found: {pdf_path}")

        if not pdf_path.suffix.lower() == ".pdf":
            raise ValueError(f"File is not a PDF: {pdf_path}")

        logger.info(f"Extracting text from PDF: {pdf_path}")

        document = ExtractedDocument(source_path=str(pdf_path))

        try:
            with pdfplumber.open(pdf_path, password=self.password or "") as pdf:
                document.total_pages = len(pdf.pages)
                logger.info(f"PDF has {document.total_pages} pages")

                for page_num, page in enumerate(pdf.pages, start=1):
                    page_content = self._extract_page(page, page_num)
                    document.pages.append(page_content)
                    logger.debug(
                        f"Page {page_num}: extracted {len(page_content.lines)} lines"
                    )

        except Exception as e:
            if _is_password_error(e):
                if not self.password:
                    raise PasswordRequiredError(
                        "PDF is password protected. Please provide the password."
                    ) from e
                raise IncorrectPasswordError(
                    "Incorrect password. Please verify your password and try again."
                ) from e
            logger.error(f"Failed to extract PDF: {e}")
            raise

        logger.info(f"Extracted {len(document.get_all_text())} characters")
        return document

    def _extract_page(self, page, page_number: int) -> PageContent:
        """
        Extract text from a single PDF page.

        Args:
            page: pdfplumber page object.
            page_number: 1-indexed page number.

        Returns:
            PageContent with the page's raw text.
        """
        raw_text = None
        try:
            raw_text = page.extract_text(x_tolerance=2, y_tolerance=2)
        except Exception as e:
            logger.debug(f"Text extraction failed on page {page_number}: {e}")

        if not raw_text:
            logger.warning(f"No text extracted from page {page_number}")
            return PageContent(page_number=page_number)

        return PageContent(page_number=page_number, raw_text=raw_text)


def extract_text_from_pdf(
    pdf_path: Union[str, Path],
    password: Optional[str] = None,
) -> str:
    """
    Convenience function to extract the full text of a statement PDF.

    Args:
        pdf_path: Path to the PDF file.
        password: Optional password for encrypted PDFs.

    Returns:
        Complete document text.
    """
    extractor = PDFExtractor(password=password)
    return extractor.extract(pdf_path).get_all_text()
