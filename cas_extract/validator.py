"""
Validation module for CAS transaction records.

Every record built by the transaction parser passes through here before it
is appended to a folio. Problems are reported, never raised: a record with
missing required fields is rejected, while undefined numeric fields and
unknown transaction types are repaired with a warning.
"""

import logging
import re
from typing import Any, Dict, Optional

from cas_extract.models import Transaction, TransactionType, ValidationResult

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("date", "transaction_type", "description")
NULLABLE_FIELDS = ("amount", "nav", "units", "unit_balance")

ISIN_PATTERN = re.compile(r"^INF[A-Z0-9]{9}$")
PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")


class TransactionValidator:
    """
    Validator for raw transaction records.

    A record is a dict keyed by the Transaction field names. A key that is
    absent is "undefined"; a key mapped to None is an explicit null.
    """

    def validate(self, record: Dict[str, Any]) -> ValidationResult:
        """
        Validate a record, repairing it in place where possible.

        Args:
            record: Raw transaction record.

        Returns:
            ValidationResult; ``is_valid`` is the accepted signal.
        """
        result = ValidationResult()

        if not record.get("date"):
            result.add_error("Missing required field: date")

        if record.get("transaction_type") is None:
            result.add_error("Missing required field: transaction_type")
        else:
            record["transaction_type"] = self.validate_transaction_type(
                record["transaction_type"], result
            )

        if record.get("description") is None:
            result.add_error("Missing required field: description")

        for name in NULLABLE_FIELDS:
            if name not in record:
                result.add_warning(
                    f'Transaction field "{name}" is undefined, should be explicitly null'
                )
                record[name] = None

        tx_type = record.get("transaction_type")
        if isinstance(tx_type, TransactionType) and tx_type.is_administrative:
            for name in ("nav", "units", "unit_balance"):
                if record.get(name) is not None:
                    result.add_warning(
                        f'Field "{name}" cleared for {tx_type.value} transaction'
                    )
                    record[name] = None

        if not result.is_valid:
            logger.warning(f"Transaction validation errors: {', '.join(result.errors)}")
        for warning in result.warnings:
            logger.warning(warning)

        return result

    @staticmethod
    def validate_transaction_type(
        value: Any, result: Optional[ValidationResult] = None
    ) -> TransactionType:
        """
        Normalize a transaction type to a TransactionType member.

        Args:
            value: A TransactionType or its display label.
            result: Optional result collecting the warning for unknown types.

        Returns:
            The matching member, or PURCHASE for anything outside the set.
        """
        tx_type = TransactionType.from_label(value)
        if tx_type is None:
            message = f'Invalid transaction type detected: "{value}". Defaulting to "Purchase".'
            if result is not None:
                result.add_warning(message)
            else:
                logger.warning(message)
            return TransactionType.PURCHASE
        return tx_type

    def build(self, record: Dict[str, Any]) -> Transaction:
        """Create a Transaction from a record that passed validation."""
        return Transaction(
            date=record["date"],
            transaction_type=record["transaction_type"],
            description=record["description"],
            amount=record["amount"],
            nav=record["nav"],
            units=record["units"],
            unit_balance=record["unit_balance"],
        )


def validate_transaction(record: Dict[str, Any]) -> bool:
    """
    Convenience function to validate a raw transaction record.

    Args:
        record: Raw transaction record; repaired in place.

    Returns:
        True if the record is accepted, False if it must be dropped.
    """
    return TransactionValidator().validate(record).is_valid


def validate_transaction_type(value: Any) -> TransactionType:
    """
    Normalize a transaction type, defaulting unknown values to PURCHASE.

    Args:
        value: A TransactionType or its display label.

    Returns:
        TransactionType member.
    """
    return TransactionValidator.validate_transaction_type(value)


def is_administrative_transaction(transaction: Transaction) -> bool:
    """Check whether a transaction is administrative."""
    return transaction.is_administrative is True


def validate_isin(isin: str) -> bool:
    """
    Validate an ISIN format.

    Args:
        isin: ISIN string to validate.

    Returns:
        True if valid, False otherwise.
    """
    return bool(isin) and bool(ISIN_PATTERN.match(isin))


def validate_pan(pan: str) -> bool:
    """
    Validate a PAN format.

    Args:
        pan: PAN string to validate.

    Returns:
        True if valid, False otherwise.
    """
    return bool(pan) and bool(PAN_PATTERN.match(pan))
