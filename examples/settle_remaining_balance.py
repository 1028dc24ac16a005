"""
Remaining Balance Example
Walks one over-funded gift through the settlement flow against the in-process
sandbox API:
1. Load the gift and show which panels are available
2. Preview the donation fee split with and without covering fees
3. Donate the balance to a charity
4. Show that the settled balance cannot be disposed of twice
5. Print the settlement history
"""
import logging

from fastapi.testclient import TestClient

from giftsettle import DispositionController, SettlementHTTPClient, Settings
from giftsettle.api.app import app
from giftsettle.money import format_money


def print_section(title: str):
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60 + "\n")


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    settings = Settings(api_base_url="http://testserver/api", app_origin="http://localhost:3000")
    sandbox = TestClient(app)
    sandbox.post("/api/gifts", json={
        "id": "demo-gift",
        "name": "Maya's Birthday",
        "targetAmount": 100,
        "currentAmount": 120,
    })

    client = SettlementHTTPClient(session=sandbox, settings=settings)
    controller = DispositionController(client, settings=settings, viewer_email="organizer@example.com")

    # ========== LOAD ==========
    print_section("1. LOAD: Gift snapshot")
    gift = controller.load_gift("demo-gift")
    print(f"Gift: {gift.name} for {gift.display_recipient_name}")
    print(f"Collected {format_money(gift.current_amount)} of {format_money(gift.target_amount)}")
    print(f"Remaining balance: {format_money(gift.remaining)}")
    print(f"Active panel: {controller.session.active_view.value}")
    print("Enabled panels: " + ", ".join(n.value for n in controller.session.view.enabled_options()))

    # ========== FEES ==========
    print_section("2. FEES: Donation preview")
    for cover_fees in (True, False):
        preview = controller.donation_preview(cover_fees=cover_fees)
        label = "Cover fees" if cover_fees else "Deduct fees"
        print(f"{label:12} fee {format_money(preview.fee)}  "
              f"charity gets {format_money(preview.net_to_charity)}  "
              f"charged {format_money(preview.total_charged)}")

    # ========== DONATE ==========
    print_section("3. DONATE: Remaining balance to UNICEF")
    result = controller.donate_to_charity("unicef", cover_fees=True)
    if result.success:
        print(f"✅ {result.donation.headline()}")
        print(f"   Receipt: {result.receipt_url}")
    else:
        print(f"❌ {result.message}")

    # ========== SINGLE SETTLEMENT ==========
    print_section("4. SECOND ATTEMPT: Tip the platform")
    again = controller.tip_platform()
    print(f"Rejected with {again.error_code}: {again.message}")

    # ========== HISTORY ==========
    print_section("5. HISTORY")
    for settlement in controller.view_settlement_history():
        print(f"• {settlement.summary()}")

    client.close()


if __name__ == "__main__":
    main()
