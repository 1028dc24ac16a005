"""HTTP routes for the sandbox settlement API."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request

from giftsettle.api.backend import SandboxBackend
from giftsettle.api.models import (
    DonationRequest,
    SeedGiftRequest,
    SettleWishbeeRequest,
    SettlementRequest,
    TransparencyEmailRequest,
)
from giftsettle.errors import ValidationError
from giftsettle.models import Gift
from giftsettle.money import to_decimal, to_wire


router = APIRouter()


def get_backend(req: Request) -> SandboxBackend:
    backend = getattr(req.app.state, "backend", None)
    if backend is None:
        raise RuntimeError("Sandbox backend not initialized")
    return backend


def _gift_body(gift: Gift) -> Dict[str, Any]:
    return {
        "gift": {
            "id": gift.id,
            "name": gift.name,
            "targetAmount": to_wire(gift.target_amount),
            "currentAmount": to_wire(gift.current_amount),
            "recipientName": gift.recipient_name,
        }
    }


# ------- Gifts -------

@router.post("/gifts", status_code=201)
def seed_gift(payload: SeedGiftRequest, backend: SandboxBackend = Depends(get_backend)) -> Dict[str, Any]:
    return _gift_body(backend.seed_gift(payload))


@router.get("/gifts/{gift_id}")
def get_gift(gift_id: str, backend: SandboxBackend = Depends(get_backend)) -> Dict[str, Any]:
    return _gift_body(backend.require_gift(gift_id))


# ------- Settlement ledger -------

@router.post("/gifts/{gift_id}/settlement")
def create_settlement(
    gift_id: str, payload: SettlementRequest, backend: SandboxBackend = Depends(get_backend)
) -> Dict[str, Any]:
    settlement = backend.record_settlement(gift_id, payload)
    return {"settlement": settlement.model_dump(by_alias=True, mode="json")}


@router.get("/gifts/{gift_id}/settlements")
def list_settlements(gift_id: str, backend: SandboxBackend = Depends(get_backend)) -> Dict[str, Any]:
    settlements = backend.list_settlements(gift_id)
    return {"settlements": [s.model_dump(by_alias=True, mode="json") for s in settlements]}


# ------- Gift cards -------

@router.post("/gifts/{gift_id}/settle-wishbee")
def settle_wishbee(
    gift_id: str, payload: SettleWishbeeRequest, backend: SandboxBackend = Depends(get_backend)
) -> Dict[str, Any]:
    return backend.settle_wishbee(gift_id, payload)


@router.get("/gifts/{gift_id}/reloadly-balance")
def gift_card_balance(
    gift_id: str,
    amount: str = Query(...),
    backend: SandboxBackend = Depends(get_backend),
) -> Dict[str, Any]:
    backend.require_gift(gift_id)
    try:
        value = to_decimal(amount)
    except ValueError:
        raise ValidationError("Valid amount is required")
    if value <= 0:
        raise ValidationError("Valid amount is required")
    return {"canFulfillGiftCard": backend.can_fulfill(value), "amount": to_wire(value)}


# ------- Donations -------

@router.post("/donations/process-instant")
def process_instant_donation(
    payload: DonationRequest, backend: SandboxBackend = Depends(get_backend)
) -> Dict[str, Any]:
    return backend.process_donation(payload)


# ------- Transparency email -------

@router.post("/gifts/transparency-email")
def transparency_email(
    payload: TransparencyEmailRequest, backend: SandboxBackend = Depends(get_backend)
) -> Dict[str, Any]:
    sent = backend.send_transparency_email(payload)
    return {"success": True, "sent": sent}
