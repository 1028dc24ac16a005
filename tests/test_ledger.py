"""Tests for the in-memory settlement ledger."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from giftsettle.ledger import SettlementLedger
from giftsettle.models import Disposition, Settlement, SettlementStatus

T0 = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_settlement(gift_id="g1", amount="10.00", disposition=Disposition.TIP, minutes=0, **kwargs):
    return Settlement(
        gift_id=gift_id,
        amount=Decimal(amount),
        disposition=disposition,
        created_at=T0 + timedelta(minutes=minutes),
        **kwargs,
    )


@pytest.fixture
def ledger():
    return SettlementLedger()


class TestRecording:
    def test_record_and_get(self, ledger):
        settlement = ledger.record(make_settlement())

        assert ledger.get(settlement.id) is settlement
        assert ledger.count() == 1

    def test_non_positive_amount_rejected(self, ledger):
        with pytest.raises(ValueError, match="positive"):
            ledger.record(make_settlement(amount="0"))

    def test_duplicate_id_rejected(self, ledger):
        """Records are appended, never replaced."""
        settlement = ledger.record(make_settlement(id="s1"))

        with pytest.raises(ValueError, match="already recorded"):
            ledger.record(make_settlement(id="s1", amount="99.00"))
        assert ledger.get("s1") is settlement


class TestQueries:
    def test_newest_first(self, ledger):
        ledger.record(make_settlement(id="old", minutes=0))
        ledger.record(make_settlement(id="new", minutes=5))
        ledger.record(make_settlement(id="other-gift", gift_id="g2", minutes=10))

        assert [s.id for s in ledger.list_for_gift("g1")] == ["new", "old"]

    def test_same_timestamp_keeps_reverse_insertion_order(self, ledger):
        ledger.record(make_settlement(id="first"))
        ledger.record(make_settlement(id="second"))

        assert [s.id for s in ledger.list_for_gift("g1")] == ["second", "first"]

    def test_by_disposition(self, ledger):
        ledger.record(make_settlement(id="tip"))
        ledger.record(make_settlement(id="donation", disposition=Disposition.DONATION, charity_name="UNICEF"))

        assert [s.id for s in ledger.by_disposition("g1", Disposition.DONATION)] == ["donation"]

    def test_total_settled_ignores_failures(self, ledger):
        ledger.record(make_settlement(amount="10.00"))
        ledger.record(make_settlement(amount="5.50", status=SettlementStatus.FAILED))

        assert ledger.total_settled("g1") == Decimal("10.00")
        assert ledger.total_settled("unknown") == Decimal("0.00")

    def test_clear(self, ledger):
        ledger.record(make_settlement(id="s1"))
        ledger.clear()

        assert ledger.count() == 0
        assert ledger.get("s1") is None
