"""Pydantic models for the sandbox settlement API.

Bodies use the camelCase keys the platform endpoints speak. Amounts are
accepted loosely (number or numeric string) and validated in the backend so
the error text matches what the platform returns.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -------- Gifts --------

class SeedGiftRequest(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    collection_title: Optional[str] = None
    gift_name: Optional[str] = None
    target_amount: Any = None
    current_amount: Any = None
    recipient_name: Optional[str] = None


# -------- Settlements --------

class SettlementRequest(CamelModel):
    amount: Any = None
    disposition: Optional[str] = None
    charity_id: Optional[str] = None
    charity_name: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_email: Optional[str] = None
    gift_name: Optional[str] = None
    total_funds_collected: Any = None
    final_gift_price: Any = None


class SettleWishbeeRequest(CamelModel):
    amount: Any = None
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    gift_name: Optional[str] = None
    total_funds_collected: Any = None
    final_gift_price: Any = None
    product_id: Optional[int] = None


# -------- Donations --------

class DonationRequest(CamelModel):
    gift_id: Optional[str] = None
    amount: Any = None
    net_amount: Any = None
    total_to_charge: Any = None
    charity_id: Optional[str] = None
    charity_name: Optional[str] = None
    fee_covered: bool = False
    recipient_name: Optional[str] = None
    gift_name: Optional[str] = None
    total_funds_collected: Any = None
    final_gift_price: Any = None


# -------- Transparency email --------

class EmailRecipient(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None


class TransparencyEmailRequest(CamelModel):
    event_data: Dict[str, Any] = Field(default_factory=dict)
    to: List[EmailRecipient] = Field(default_factory=list)
