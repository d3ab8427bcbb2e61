from decimal import Decimal

import pytest

from models.order import Order
from services import ledger, lifecycle, payouts
from services import orders as order_service
from services.errors import NotFoundError, ValidationError


@pytest.fixture()
def paid_orders(db, build):
    """A KYC-verified seller with three paid orders (100, 60, 30) and one pending one."""
    seller_user, profile = build.seller(kyc_verified=True)
    store = build.store(profile)
    product = build.product(store, price="10.00", quantity=100)
    buyer = build.buyer()
    address = build.address(buyer)
    admin = build.admin()

    ids = []
    for qty in (10, 6, 3, 1):
        result = order_service.create_single_item_order(db, buyer.id, product.id, qty, address.id)
        ids.append(result["orders"][0]["id"])
    for order_id in ids[:3]:
        lifecycle.update_order_status(db, profile.id, order_id, "paid")

    return {
        "seller_user": seller_user, "profile": profile, "store": store,
        "paid_ids": ids[:3], "pending_id": ids[3], "admin": admin, "buyer": buyer,
    }


def _wallet(db):
    db.expire_all()
    return ledger.get_wallet(db)


class TestPayoutRequest:
    def test_request_sums_frozen_splits(self, db, paid_orders):
        p = paid_orders
        payout = payouts.create_payout_request(db, p["seller_user"].id)

        assert payout.status == "requested"
        assert sorted(payout.order_ids) == sorted(p["paid_ids"])
        assert payout.gross_amount == Decimal("190.00")
        assert payout.commission_amount == Decimal("9.50")
        assert payout.amount == Decimal("180.50")
        assert payout.commission_rate == Decimal("0.0500")

        db.expire_all()
        for order_id in p["paid_ids"]:
            order = db.get(Order, order_id)
            assert order.payout_id == payout.id
            assert order.payout_status == "requested"
        assert db.get(Order, p["pending_id"]).payout_id is None

    def test_explicit_order_subset(self, db, paid_orders):
        p = paid_orders
        payout = payouts.create_payout_request(db, p["seller_user"].id, order_ids=[p["paid_ids"][1]])
        assert payout.amount == Decimal("57.00")

        earnings = ledger.seller_earnings(db, p["profile"].id)
        assert earnings["pending_payout"] == Decimal("57.00")
        assert earnings["available_for_payout"] == Decimal("123.50")

    def test_overlapping_requests_cannot_both_succeed(self, db, paid_orders):
        p = paid_orders
        payouts.create_payout_request(db, p["seller_user"].id, order_ids=p["paid_ids"][:2])

        with pytest.raises(ValidationError):
            payouts.create_payout_request(db, p["seller_user"].id, order_ids=p["paid_ids"][1:])

        db.expire_all()
        claimed = db.query(Order).filter(Order.payout_id.isnot(None)).count()
        assert claimed == 2

    def test_conditional_claim_detects_a_lost_race(self, db, session_factory, paid_orders):
        p = paid_orders
        # Both requests read the same eligible orders; the slower one must lose
        order = db.get(Order, p["paid_ids"][0])
        assert order.payout_id is None

        other = session_factory()
        try:
            payouts.create_payout_request(other, p["seller_user"].id, order_ids=[p["paid_ids"][0]])
        finally:
            other.close()

        claimed = payouts._set_orders(
            db, [p["paid_ids"][0]], Order.payout_id.is_(None), payout_status="requested"
        )
        db.rollback()
        assert claimed == 0

    def test_pending_order_is_not_eligible(self, db, paid_orders):
        p = paid_orders
        with pytest.raises(ValidationError, match="is not eligible for payout"):
            payouts.create_payout_request(db, p["seller_user"].id, order_ids=[p["pending_id"]])

    def test_cancelled_order_is_rejected(self, db, paid_orders):
        p = paid_orders
        lifecycle.cancel_order(db, p["buyer"].id, p["pending_id"])
        with pytest.raises(ValidationError, match="is cancelled"):
            payouts.create_payout_request(db, p["seller_user"].id, order_ids=[p["pending_id"]])

    def test_foreign_order_is_not_found(self, db, build, paid_orders):
        p = paid_orders
        other_user, _ = build.seller(kyc_verified=True)
        with pytest.raises(NotFoundError):
            payouts.create_payout_request(db, other_user.id, order_ids=[p["paid_ids"][0]])

    def test_requires_kyc(self, db, build, paid_orders):
        p = paid_orders
        p["profile"].kyc_verified = False
        db.commit()
        with pytest.raises(ValidationError, match="KYC verification is required"):
            payouts.create_payout_request(db, p["seller_user"].id)

    def test_nothing_eligible(self, db, paid_orders):
        p = paid_orders
        payouts.create_payout_request(db, p["seller_user"].id)
        with pytest.raises(ValidationError, match="No orders eligible for payout"):
            payouts.create_payout_request(db, p["seller_user"].id)


class TestPayoutProcessing:
    def test_approve_then_complete_moves_wallet(self, db, paid_orders):
        p = paid_orders
        payout = payouts.create_payout_request(db, p["seller_user"].id)
        assert _wallet(db).available_balance == Decimal("190.00")

        payout = payouts.process_payout(db, p["admin"].id, payout.id, "approved")
        assert payout.status == "approved"
        wallet = _wallet(db)
        assert wallet.pending_payouts == Decimal("180.50")
        assert wallet.available_balance == Decimal("9.50")

        payouts.settle_payout(db, p["admin"].id, payout.id, "processing")
        payout = payouts.settle_payout(db, p["admin"].id, payout.id, "completed", transaction_id="UTR123")
        assert payout.status == "completed"
        assert payout.transaction_id == "UTR123"
        assert payout.processed_by == p["admin"].id

        wallet = _wallet(db)
        assert wallet.pending_payouts == Decimal("0.00")
        assert wallet.total_balance == Decimal("9.50")
        assert wallet.total_payouts_processed == Decimal("180.50")
        assert wallet.total_commission_earned == Decimal("9.50")

        orders = db.query(Order).filter(Order.payout_id == payout.id).all()
        assert {o.payout_status for o in orders} == {"completed"}

    def test_reject_requires_notes_and_releases_orders(self, db, paid_orders):
        p = paid_orders
        payout = payouts.create_payout_request(db, p["seller_user"].id)

        with pytest.raises(ValidationError, match="admin_notes are required"):
            payouts.process_payout(db, p["admin"].id, payout.id, "rejected")

        payout = payouts.process_payout(db, p["admin"].id, payout.id, "rejected", notes="Bank mismatch")
        assert payout.status == "rejected"
        assert payout.admin_notes == "Bank mismatch"

        db.expire_all()
        for order_id in p["paid_ids"]:
            order = db.get(Order, order_id)
            assert order.payout_id is None
            assert order.payout_status == "pending"

        # Released orders can be claimed again
        again = payouts.create_payout_request(db, p["seller_user"].id)
        assert again.amount == Decimal("180.50")

    def test_only_requested_payouts_are_processed(self, db, paid_orders):
        p = paid_orders
        payout = payouts.create_payout_request(db, p["seller_user"].id)
        payouts.process_payout(db, p["admin"].id, payout.id, "approved")

        with pytest.raises(ValidationError, match="Only requested payouts can be processed"):
            payouts.process_payout(db, p["admin"].id, payout.id, "approved")

    def test_completion_needs_transaction_id(self, db, paid_orders):
        p = paid_orders
        payout = payouts.create_payout_request(db, p["seller_user"].id)
        payouts.process_payout(db, p["admin"].id, payout.id, "approved")
        payouts.settle_payout(db, p["admin"].id, payout.id, "processing")

        with pytest.raises(ValidationError, match="transaction_id is required"):
            payouts.settle_payout(db, p["admin"].id, payout.id, "completed")
        db.expire_all()
        assert payouts.get_payout(db, payout.id).status == "processing"

    def test_failed_payout_reverses_hold(self, db, paid_orders):
        p = paid_orders
        payout = payouts.create_payout_request(db, p["seller_user"].id)
        payouts.process_payout(db, p["admin"].id, payout.id, "approved")

        payouts.settle_payout(db, p["admin"].id, payout.id, "failed", notes="Account closed")

        wallet = _wallet(db)
        assert wallet.pending_payouts == Decimal("0.00")
        assert wallet.available_balance == Decimal("190.00")
        assert ledger.seller_earnings(db, p["profile"].id)["available_for_payout"] == Decimal("180.50")

    def test_unknown_payout(self, db, paid_orders):
        with pytest.raises(NotFoundError, match="Payout not found"):
            payouts.process_payout(db, paid_orders["admin"].id, 999, "approved")

    def test_admin_listing_filters(self, db, paid_orders):
        p = paid_orders
        payouts.create_payout_request(db, p["seller_user"].id)
        rows, total = payouts.list_payouts(db, status="requested", seller_id=p["profile"].id)
        assert total == 1
        rows, total = payouts.list_payouts(db, status="completed")
        assert total == 0
