"""
Transaction type classification for CAS transaction descriptions.

Administrative rows carry a ``***`` marker and are classified before any
financial keyword is considered, so that a marker such as
``*** Address Updated - Redemption Request Noted ***`` can never be read as
a redemption.
"""

import logging
import re
from typing import List, Tuple

from cas_extract.models import TransactionType

logger = logging.getLogger(__name__)

ADMIN_MARKER = "***"


class TransactionClassifier:
    """
    Maps a free-text description to one of the nine transaction types.

    Matching is case-insensitive substring matching; the pattern lists are
    evaluated top to bottom and the first hit wins.
    """

    # Checked only when the description carries the *** marker
    # (order matters - most specific first)
    ADMIN_PATTERNS: List[Tuple[TransactionType, List[str]]] = [
        (TransactionType.STAMP_DUTY, ["stamp duty"]),
        (TransactionType.STT_PAID, ["stt paid", "stt"]),
    ]

    # Checked for unmarked descriptions
    FINANCIAL_PATTERNS: List[Tuple[TransactionType, List[str]]] = [
        (TransactionType.SYSTEMATIC_INVESTMENT, ["systematic investment", "sip"]),
        (TransactionType.SWITCH_OUT, ["switch-out", "switchout"]),
        (TransactionType.SWITCH_IN, ["switch-in", "switchin"]),
        (TransactionType.REDEMPTION, ["redemption", "redeem"]),
        (TransactionType.DIVIDEND, ["dividend"]),
        (TransactionType.PURCHASE, ["purchase"]),
    ]

    def __init__(self):
        """Initialize the classifier with compiled patterns."""
        self.admin_patterns = self._compile(self.ADMIN_PATTERNS)
        self.financial_patterns = self._compile(self.FINANCIAL_PATTERNS)

    @staticmethod
    def _compile(
        table: List[Tuple[TransactionType, List[str]]]
    ) -> List[Tuple[TransactionType, List[re.Pattern]]]:
        return [
            (tx_type, [re.compile(re.escape(k), re.IGNORECASE) for k in keywords])
            for tx_type, keywords in table
        ]

    @staticmethod
    def _first_match(
        description: str,
        patterns: List[Tuple[TransactionType, List[re.Pattern]]],
    ):
        for tx_type, compiled in patterns:
            if any(p.search(description) for p in compiled):
                return tx_type
        return None

    def classify(self, description: object) -> TransactionType:
        """
        Classify a transaction description.

        Args:
            description: Transaction description text.

        Returns:
            The TransactionType; PURCHASE when nothing matches or the input
            is not a usable string.
        """
        if not description or not isinstance(description, str):
            logger.warning(
                f"Invalid description provided for classification: {description!r}"
            )
            return TransactionType.PURCHASE

        if ADMIN_MARKER in description:
            return (
                self._first_match(description, self.admin_patterns)
                or TransactionType.ADMINISTRATIVE
            )

        return (
            self._first_match(description, self.financial_patterns)
            or TransactionType.PURCHASE
        )


_default_classifier = TransactionClassifier()


def classify_transaction(description: object) -> TransactionType:
    """
    Classify a transaction based on its description.

    Args:
        description: Transaction description text.

    Returns:
        Classified TransactionType.
    """
    return _default_classifier.classify(description)


def is_administrative_description(description: object) -> bool:
    """Check whether a description carries the administrative marker."""
    return isinstance(description, str) and ADMIN_MARKER in description
