"""giftsettle - settle the remaining balance of a group gift."""

__version__ = "0.1.0"

# Main controller interface
from giftsettle.controller import (
    DispositionController,
    DispositionOutcome,
    DispositionResult,
)

# Core models (for advanced usage)
from giftsettle.models import (
    Gift,
    Settlement,
    Disposition,
    SettlementStatus,
    DonationAmounts,
    Charity,
)

# Components (for advanced usage)
from giftsettle.config import Settings, get_settings
from giftsettle.errors import (
    SettlementError,
    NotFoundError,
    LoadError,
    ValidationError,
    ServiceError,
    SessionStateError,
)
from giftsettle.fees import compute_donation_amounts, percent_plus_flat
from giftsettle.http_client import SettlementHTTPClient
from giftsettle.ledger import SettlementLedger
from giftsettle.session import SessionState, SettlementSession
from giftsettle.views import NavId, RemainingBalanceView

__all__ = [
    # Controller
    "DispositionController",
    "DispositionOutcome",
    "DispositionResult",
    # Models
    "Gift",
    "Settlement",
    "Disposition",
    "SettlementStatus",
    "DonationAmounts",
    "Charity",
    # Components
    "Settings",
    "get_settings",
    "SettlementError",
    "NotFoundError",
    "LoadError",
    "ValidationError",
    "ServiceError",
    "SessionStateError",
    "compute_donation_amounts",
    "percent_plus_flat",
    "SettlementHTTPClient",
    "SettlementLedger",
    "SessionState",
    "SettlementSession",
    "NavId",
    "RemainingBalanceView",
]
