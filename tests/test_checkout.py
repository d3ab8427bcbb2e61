from decimal import Decimal

import pytest

from models.cart import Cart, CartItem
from models.order import Order, OrderItem
from models.product import Product
from services import addresses as address_service
from services import orders as order_service
from services.errors import NotFoundError, ValidationError


def _quantity(db, product_id):
    db.expire_all()
    return db.query(Product.quantity).filter(Product.id == product_id).scalar()


@pytest.fixture()
def marketplace(build):
    """Two active stores from two sellers and one buyer with an address."""
    _, seller_a = build.seller()
    _, seller_b = build.seller()
    store_a = build.store(seller_a, name="Store A")
    store_b = build.store(seller_b, name="Store B")
    buyer = build.buyer()
    address = build.address(buyer)
    return {
        "buyer": buyer,
        "address": address,
        "store_a": store_a,
        "store_b": store_b,
        "a1": build.product(store_a, price="100.00", quantity=5),
        "a2": build.product(store_a, price="50.00", quantity=5),
        "b1": build.product(store_b, price="30.00", quantity=5),
    }


class TestCartCheckout:
    def test_two_stores_give_two_orders_with_frozen_split(self, db, build, marketplace):
        m = marketplace
        build.cart(m["buyer"], (m["a1"], 1), (m["a2"], 2), (m["b1"], 1))

        result = order_service.create_order_from_cart(db, m["buyer"].id, m["address"].id)

        assert result["total_orders"] == 2
        assert result["total_amount"] == Decimal("230.00")

        by_store = {o["store"]["id"]: o for o in result["orders"]}
        order_a = by_store[m["store_a"].id]
        order_b = by_store[m["store_b"].id]

        assert order_a["total_amount"] == Decimal("200.00")
        assert order_a["admin_commission"] == Decimal("10.00")
        assert order_a["seller_amount"] == Decimal("190.00")
        assert len(order_a["items"]) == 2

        assert order_b["total_amount"] == Decimal("30.00")
        assert order_b["admin_commission"] == Decimal("1.50")
        assert order_b["seller_amount"] == Decimal("28.50")

        for o in result["orders"]:
            assert o["status"] == "pending"
            assert o["payout_status"] == "pending"
            assert o["payment_received"] is False
            assert o["shipping_address"]["id"] == m["address"].id

        # Cart emptied and stock taken
        db.expire_all()
        cart = db.query(Cart).filter(Cart.user_id == m["buyer"].id).one()
        assert cart.items == []
        assert _quantity(db, m["a1"].id) == 4
        assert _quantity(db, m["a2"].id) == 3
        assert _quantity(db, m["b1"].id) == 4

    def test_price_snapshot_survives_catalog_change(self, db, build, marketplace):
        m = marketplace
        result = order_service.create_single_item_order(db, m["buyer"].id, m["a1"].id, 1, m["address"].id)
        order_id = result["orders"][0]["id"]

        product = db.query(Product).filter(Product.id == m["a1"].id).one()
        product.price = Decimal("999.00")
        db.commit()

        item = db.query(OrderItem).filter(OrderItem.order_id == order_id).one()
        assert item.price_at_purchase == Decimal("100.00")

    def test_empty_cart(self, db, build, marketplace):
        m = marketplace
        build.cart(m["buyer"])
        with pytest.raises(ValidationError, match="Your cart is empty"):
            order_service.create_order_from_cart(db, m["buyer"].id, m["address"].id)

    def test_over_quantity_cart_line_rejects_whole_checkout(self, db, build, marketplace):
        m = marketplace
        build.cart(m["buyer"], (m["a1"], 1), (m["b1"], 6))

        with pytest.raises(ValidationError, match='Only 5 of "'):
            order_service.create_order_from_cart(db, m["buyer"].id, m["address"].id)

        assert db.query(Order).count() == 0
        assert _quantity(db, m["a1"].id) == 5
        assert db.query(CartItem).count() == 2

    def test_inactive_store_blocks_checkout(self, db, build, marketplace):
        m = marketplace
        m["store_b"].is_active = False
        db.commit()
        build.cart(m["buyer"], (m["a1"], 1), (m["b1"], 1))

        with pytest.raises(ValidationError, match="is not available"):
            order_service.create_order_from_cart(db, m["buyer"].id, m["address"].id)
        assert db.query(Order).count() == 0

    def test_foreign_address_is_not_found(self, db, build, marketplace):
        m = marketplace
        other = build.buyer()
        other_address = build.address(other)
        build.cart(m["buyer"], (m["a1"], 1))

        with pytest.raises(NotFoundError, match="Address not found"):
            order_service.create_order_from_cart(db, m["buyer"].id, other_address.id)


class TestSingleItemOrder:
    def test_not_enough_stock_changes_nothing(self, db, build, marketplace):
        m = marketplace
        product = build.product(m["store_a"], price="20.00", quantity=3)

        with pytest.raises(ValidationError) as exc:
            order_service.create_single_item_order(db, m["buyer"].id, product.id, 5, m["address"].id)

        assert exc.value.message == "Only 3 items available"
        assert db.query(Order).count() == 0
        assert _quantity(db, product.id) == 3

    def test_unknown_product(self, db, marketplace):
        m = marketplace
        with pytest.raises(NotFoundError, match="Product 9999 not found"):
            order_service.create_single_item_order(db, m["buyer"].id, 9999, 1, m["address"].id)

    def test_exact_stock_can_be_bought(self, db, marketplace):
        m = marketplace
        order_service.create_single_item_order(db, m["buyer"].id, m["b1"].id, 5, m["address"].id)
        assert _quantity(db, m["b1"].id) == 0


class TestDirectOrder:
    def test_split_invariant(self, db, marketplace):
        m = marketplace
        items = [(m["a1"].id, 2), (m["b1"].id, 3), (m["a2"].id, 1)]
        result = order_service.create_direct_order(db, m["buyer"].id, items, m["address"].id)

        assert result["total_orders"] == 2
        expected = Decimal("100.00") * 2 + Decimal("30.00") * 3 + Decimal("50.00")
        assert sum(o["total_amount"] for o in result["orders"]) == expected
        for o in result["orders"]:
            assert o["admin_commission"] + o["seller_amount"] == o["total_amount"]

    def test_duplicate_lines_are_merged(self, db, marketplace):
        m = marketplace
        result = order_service.create_direct_order(
            db, m["buyer"].id, [(m["a1"].id, 2), (m["a1"].id, 1)], m["address"].id
        )
        items = result["orders"][0]["items"]
        assert len(items) == 1
        assert items[0]["quantity"] == 3

    def test_duplicate_lines_checked_against_combined_quantity(self, db, marketplace):
        m = marketplace
        with pytest.raises(ValidationError):
            order_service.create_direct_order(
                db, m["buyer"].id, [(m["a1"].id, 3), (m["a1"].id, 3)], m["address"].id
            )
        assert _quantity(db, m["a1"].id) == 5

    def test_no_items(self, db, marketplace):
        m = marketplace
        with pytest.raises(ValidationError, match="No items provided"):
            order_service.create_direct_order(db, m["buyer"].id, [], m["address"].id)

    def test_zero_quantity(self, db, marketplace):
        m = marketplace
        with pytest.raises(ValidationError, match="Quantity must be at least 1"):
            order_service.create_direct_order(db, m["buyer"].id, [(m["a1"].id, 0)], m["address"].id)

    def test_stock_race_rolls_back_every_group(self, db, session_factory, marketplace):
        m = marketplace
        # Validation sees 5 units, then another buyer takes 4 before the reservation
        product = db.query(Product).filter(Product.id == m["b1"].id).one()
        assert product.quantity == 5

        other = session_factory()
        try:
            other.query(Product).filter(Product.id == m["b1"].id).update({"quantity": 1})
            other.commit()
        finally:
            other.close()

        with pytest.raises(ValidationError, match='Only 1 of "'):
            order_service._place_orders(
                db, m["buyer"].id, m["address"].id,
                order_service.group_by_store([
                    order_service.LineItem(product=db.get(Product, m["a1"].id), quantity=1),
                    order_service.LineItem(product=product, quantity=3),
                ]),
            )

        assert db.query(Order).count() == 0
        assert _quantity(db, m["a1"].id) == 5
        assert _quantity(db, m["b1"].id) == 1


class TestOrderSummary:
    def test_items_summary(self, db, marketplace):
        m = marketplace
        summary = order_service.order_summary(
            db, m["buyer"].id, "items", [(m["a1"].id, 1), (m["b1"].id, 2), (m["a2"].id, 50)]
        )
        assert summary["subtotal"] == Decimal("160.00")
        assert summary["total"] == Decimal("160.00")
        assert summary["stores_count"] == 2
        assert summary["items_count"] == 3
        assert summary["unavailable_product_ids"] == [m["a2"].id]

    def test_cart_summary_with_no_cart(self, db, marketplace):
        summary = order_service.order_summary(db, marketplace["buyer"].id, "cart")
        assert summary["subtotal"] == Decimal("0.00")
        assert summary["stores_count"] == 0


class TestAddressBook:
    def test_address_of_placed_order_cannot_be_deleted(self, db, marketplace):
        m = marketplace
        result = order_service.create_single_item_order(db, m["buyer"].id, m["a1"].id, 1, m["address"].id)

        with pytest.raises(ValidationError, match="Address is used by existing orders"):
            address_service.delete_address(db, m["buyer"].id, m["address"].id)

        order = order_service.get_buyer_order(db, m["buyer"].id, result["orders"][0]["id"])
        view = order_service.project_order(db, order)
        assert view["shipping_address"]["id"] == m["address"].id
        assert view["shipping_address"]["pincode"] == "560001"

    def test_unused_address_is_deleted(self, db, build, marketplace):
        spare = build.address(marketplace["buyer"])
        address_service.delete_address(db, marketplace["buyer"].id, spare.id)

        with pytest.raises(NotFoundError):
            address_service.get_buyer_address(db, marketplace["buyer"].id, spare.id)
