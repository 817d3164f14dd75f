"""Unit tests for confirmation waiting."""

import pytest

from deployment_ledger.confirmations import ConfirmationWaiter
from deployment_ledger.exceptions import ConfirmationTimeoutError, ReceiptNotFoundError
from deployment_ledger.types import Receipt

TX_HASH = "0x" + "ab" * 32


@pytest.fixture
def receipt() -> Receipt:
    return Receipt(transaction_hash=TX_HASH, block_number=42, gas_used=21000)


class TestConfirmationWaiter:
    def test_returns_receipt(self, fake_client, receipt):
        fake_client.receipt = receipt

        assert ConfirmationWaiter(fake_client).wait_for_confirmation(TX_HASH) == receipt

    def test_uses_default_depth(self, fake_client, receipt):
        fake_client.receipt = receipt

        ConfirmationWaiter(fake_client, default_confirmations=5).wait_for_confirmation(TX_HASH)

        assert fake_client.called("wait_for_transaction") == [
            ("wait_for_transaction", TX_HASH, 5, None)
        ]

    def test_explicit_depth_and_timeout_passed_through(self, fake_client, receipt):
        fake_client.receipt = receipt

        ConfirmationWaiter(fake_client).wait_for_confirmation(TX_HASH, confirmations=3, timeout=60)

        assert fake_client.called("wait_for_transaction") == [
            ("wait_for_transaction", TX_HASH, 3, 60)
        ]

    def test_missing_receipt_raises(self, fake_client):
        fake_client.receipt = None

        with pytest.raises(ReceiptNotFoundError):
            ConfirmationWaiter(fake_client).wait_for_confirmation(TX_HASH)

    def test_deadline_expiry_raises_timeout(self, fake_client):
        fake_client.receipt = None

        with pytest.raises(ConfirmationTimeoutError):
            ConfirmationWaiter(fake_client).wait_for_confirmation(TX_HASH, timeout=0)

    def test_rejects_zero_confirmations(self, fake_client):
        with pytest.raises(ValueError):
            ConfirmationWaiter(fake_client).wait_for_confirmation(TX_HASH, confirmations=0)
