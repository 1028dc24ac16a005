"""Settlement Ledger - append-only record of balance dispositions.

The SettlementLedger is responsible for:
- Recording one Settlement per disposition event
- Answering history queries per gift, newest first
- Never editing or deleting a record (a later record supersedes an earlier one)

It backs the sandbox API; production deployments point the client at the
platform's own ledger endpoints instead.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from giftsettle.models import Disposition, Settlement, SettlementStatus

logger = logging.getLogger(__name__)


class SettlementLedger:
    """In-memory, append-only settlement ledger.

    Usage Example:
        ```python
        ledger = SettlementLedger()
        record = ledger.record(Settlement(
            gift_id="g1",
            amount=Decimal("20.00"),
            disposition=Disposition.TIP,
        ))
        history = ledger.list_for_gift("g1")
        print(history[0].summary())   # "WISHBEE_TIP $20.00 to Wishbee (Succeeded)"
        ```
    """

    def __init__(self):
        self._records: List[Settlement] = []
        self._by_id: Dict[str, Settlement] = {}

    def record(self, settlement: Settlement) -> Settlement:
        """Append a settlement record.

        Args:
            settlement (Settlement): The record to append

        Returns:
            Settlement: The stored record

        Raises:
            ValueError: If the amount is not positive or the id is already used
        """
        if settlement.amount <= 0:
            raise ValueError("Settlement amount must be positive")
        if settlement.id in self._by_id:
            raise ValueError(f"Settlement {settlement.id} already recorded")

        self._records.append(settlement)
        self._by_id[settlement.id] = settlement
        logger.info(
            "Recorded %s settlement %s for gift %s: %s",
            settlement.disposition.value, settlement.id, settlement.gift_id, settlement.amount,
        )
        return settlement

    def get(self, settlement_id: str) -> Optional[Settlement]:
        return self._by_id.get(settlement_id)

    def list_for_gift(self, gift_id: str) -> List[Settlement]:
        """All records for a gift, newest first.

        Records with equal timestamps keep reverse insertion order.
        """
        records = [s for s in self._records if s.gift_id == gift_id]
        records.reverse()
        return sorted(records, key=lambda s: s.created_at, reverse=True)

    def by_disposition(self, gift_id: str, disposition: Disposition) -> List[Settlement]:
        return [s for s in self.list_for_gift(gift_id) if s.disposition == disposition]

    def total_settled(self, gift_id: str) -> Decimal:
        """Sum of successful settlements for a gift."""
        return sum(
            (s.amount for s in self._records if s.gift_id == gift_id and s.status == SettlementStatus.COMPLETED),
            Decimal("0.00"),
        )

    def count(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        """Drop every record.

        Warning:
            Destructive; only for resetting the sandbox between tests.
        """
        self._records.clear()
        self._by_id.clear()
