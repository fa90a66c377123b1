"""Tests for transaction type classification."""

import pytest

from cas_extract.classifier import (
    TransactionClassifier,
    classify_transaction,
    is_administrative_description,
)
from cas_extract.models import TransactionType


class TestAdministrativeClassification:
    """Tests for ***-marked descriptions."""

    def test_stamp_duty(self):
        """Test stamp duty markers."""
        assert classify_transaction("*** Stamp Duty ***") == TransactionType.STAMP_DUTY
        assert classify_transaction("*** stamp duty ***") == TransactionType.STAMP_DUTY

    def test_stt_paid(self):
        """Test STT markers."""
        assert classify_transaction("*** STT Paid ***") == TransactionType.STT_PAID
        assert classify_transaction("*** stt paid ***") == TransactionType.STT_PAID
        assert classify_transaction("*** STT ***") == TransactionType.STT_PAID

    @pytest.mark.parametrize("description", [
        "***Address Updated from KRA Data***",
        "***Registration of Nominee***",
        "***CAN Data Updation***",
        "***NCT Change of Default Bank Mandate***",
        "***Administrative Entry***",
    ])
    def test_other_markers_are_administrative(self, description):
        """Test generic administrative markers."""
        result = classify_transaction(description)
        assert result == TransactionType.ADMINISTRATIVE
        assert result.is_administrative

    def test_marker_beats_financial_keyword(self):
        """Test the *** check runs before keyword matching."""
        assert classify_transaction("*** Purchase ***") == TransactionType.ADMINISTRATIVE
        assert (
            classify_transaction("*** Address Updated - Redemption Request Noted ***")
            == TransactionType.ADMINISTRATIVE
        )
        assert classify_transaction("***SIP Registered***") == TransactionType.ADMINISTRATIVE

    def test_stamp_duty_beats_stt(self):
        """Test stamp duty is checked before STT."""
        assert classify_transaction("*** Stamp Duty incl. STT ***") == TransactionType.STAMP_DUTY


class TestFinancialClassification:
    """Tests for keyword-based classification."""

    def test_systematic_investment(self):
        """Test SIP descriptions."""
        assert classify_transaction("Systematic Investment (1)") == TransactionType.SYSTEMATIC_INVESTMENT
        assert classify_transaction("SIP Purchase") == TransactionType.SYSTEMATIC_INVESTMENT

    def test_switches(self):
        """Test switch-out and switch-in descriptions."""
        assert classify_transaction("Switch-Out - To ABSL Small Cap Fund") == TransactionType.SWITCH_OUT
        assert classify_transaction("Switchout to another fund") == TransactionType.SWITCH_OUT
        assert classify_transaction("Switch-In - From ABSL Arbitrage Fund") == TransactionType.SWITCH_IN
        assert classify_transaction("Switchin from another fund") == TransactionType.SWITCH_IN

    def test_redemption(self):
        """Test redemption descriptions, including an unmarked STT mention."""
        assert classify_transaction("Redemption less TDS, STT") == TransactionType.REDEMPTION
        assert classify_transaction("Redeem units") == TransactionType.REDEMPTION

    def test_dividend(self):
        """Test dividend descriptions."""
        assert classify_transaction("Dividend Payout") == TransactionType.DIVIDEND

    def test_purchase(self):
        """Test purchase descriptions."""
        assert classify_transaction("Purchase") == TransactionType.PURCHASE
        assert classify_transaction("Systematic Purchase") == TransactionType.PURCHASE

    def test_financial_types_not_administrative(self):
        """Test the administrative flag on financial results."""
        assert not classify_transaction("Redemption").is_administrative


class TestDefaults:
    """Tests for fallback behaviour."""

    def test_no_keyword_defaults_to_purchase(self):
        """Test an unrecognized description."""
        assert classify_transaction("Bonus allotment") == TransactionType.PURCHASE

    @pytest.mark.parametrize("description", ["", None, 42, ["Redemption"]])
    def test_invalid_input_defaults_to_purchase(self, description):
        """Test empty and non-string input does not raise."""
        result = TransactionClassifier().classify(description)
        assert result == TransactionType.PURCHASE
        assert not result.is_administrative

    def test_mixed_case(self):
        """Test case-insensitive matching."""
        assert classify_transaction("SYSTEMATIC INVESTMENT") == TransactionType.SYSTEMATIC_INVESTMENT
        assert classify_transaction("RedemPTion") == TransactionType.REDEMPTION
        assert classify_transaction("*** STAMP DUTY ***") == TransactionType.STAMP_DUTY


class TestMarkerHelper:
    """Tests for is_administrative_description."""

    def test_marker_detection(self):
        """Test marker presence check."""
        assert is_administrative_description("***Registration of Nominee***")
        assert not is_administrative_description("Purchase")
        assert not is_administrative_description(None)
