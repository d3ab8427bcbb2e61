"""HTTP-level checks: auth, role gates and error mapping."""
from decimal import Decimal

from conftest import auth_headers
from models.log import Log


def _address_payload():
    return {
        "name": "Asha Buyer",
        "phone": "9876543210",
        "line1": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
    }


class TestAuth:
    def test_register_login_me(self, client):
        response = client.post("/register", json={
            "email": "New.Buyer@example.com", "password": "secret123",
            "first_name": "New", "last_name": "Buyer",
        })
        assert response.status_code == 201
        assert response.json()["email"] == "new.buyer@example.com"
        assert response.json()["role"] == "buyer"

        response = client.post("/login", json={"email": "new.buyer@example.com", "password": "secret123"})
        assert response.status_code == 200
        token = response.json()["access_token"]

        response = client.get("/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["email_verified"] is False

    def test_duplicate_email(self, client, build):
        build.buyer(email="taken@example.com")
        response = client.post("/register", json={
            "email": "taken@example.com", "password": "secret123",
            "first_name": "A", "last_name": "B",
        })
        assert response.status_code == 400

    def test_bad_password_and_rate_limit(self, client, build):
        build.buyer(email="b@example.com")
        for _ in range(5):
            response = client.post("/login", json={"email": "b@example.com", "password": "wrong-pass"})
            assert response.status_code == 401
        response = client.post("/login", json={"email": "b@example.com", "password": "wrong-pass"})
        assert response.status_code == 429

    def test_missing_token(self, client):
        assert client.get("/orders").status_code in (401, 403)

    def test_seller_registration_creates_profile(self, client):
        response = client.post("/register", json={
            "email": "shop@example.com", "password": "secret123",
            "first_name": "Shop", "last_name": "Owner", "role": "seller",
        })
        assert response.status_code == 201
        assert response.json()["role"] == "seller"


class TestBuyerFlow:
    def test_checkout_over_http(self, client, db, build):
        _, profile = build.seller()
        store_a = build.store(profile)
        store_b = build.store(profile)
        p1 = build.product(store_a, price="100.00", quantity=5)
        p2 = build.product(store_b, price="30.00", quantity=5)
        buyer = build.buyer()
        headers = auth_headers(buyer)

        response = client.post("/addresses", json=_address_payload(), headers=headers)
        assert response.status_code == 201
        address_id = response.json()["id"]

        assert client.post("/cart/add", json={"product_id": p1.id, "quantity": 2}, headers=headers).status_code == 200
        response = client.post("/cart/add", json={"product_id": p2.id}, headers=headers)
        assert response.json()["total"] == 230.0

        response = client.post("/orders/summary", json={"source": "cart"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["stores_count"] == 2

        response = client.post("/orders/cart", json={"address_id": address_id}, headers=headers)
        assert response.status_code == 201
        body = response.json()
        assert body["total_orders"] == 2
        assert body["total_amount"] == 230.0

        response = client.delete(f"/addresses/{address_id}", headers=headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Address is used by existing orders"

        response = client.get("/orders", headers=headers)
        assert response.json()["total"] == 2

        order_id = body["orders"][0]["id"]
        response = client.post(f"/orders/{order_id}/cancel", headers=headers)
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        response = client.post(f"/orders/{order_id}/cancel", headers=headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Only pending orders can be cancelled"

        assert db.query(Log).filter(Log.action == "ORDER_CREATE").count() == 1

    def test_insufficient_stock_maps_to_400(self, client, build):
        _, profile = build.seller()
        product = build.product(build.store(profile), quantity=3)
        buyer = build.buyer()
        address = build.address(buyer)

        response = client.post(
            "/orders/single",
            json={"product_id": product.id, "quantity": 5, "address_id": address.id},
            headers=auth_headers(buyer),
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Only 3 items available"

    def test_unknown_order_is_404(self, client, build):
        buyer = build.buyer()
        assert client.get("/orders/12345", headers=auth_headers(buyer)).status_code == 404

    def test_sellers_cannot_buy(self, client, build):
        seller_user, _ = build.seller()
        response = client.post("/orders/cart", json={"address_id": 1}, headers=auth_headers(seller_user))
        assert response.status_code == 403


class TestSellerAndAdminFlow:
    def test_store_product_payout_cycle(self, client, db, build):
        seller_user, profile = build.seller()
        admin = build.admin()
        buyer = build.buyer()
        address = build.address(buyer)
        s_headers, a_headers = auth_headers(seller_user), auth_headers(admin)

        response = client.post("/seller/stores", json={"name": "Spice Corner"}, headers=s_headers)
        assert response.status_code == 201
        store = response.json()
        assert store["slug"] == "spice-corner"

        response = client.post("/seller/products", json={
            "store_id": store["id"], "title": "Saffron", "price": 40, "quantity": 10,
        }, headers=s_headers)
        assert response.status_code == 201
        product_id = response.json()["id"]

        response = client.post("/orders/single", json={
            "product_id": product_id, "quantity": 2, "address_id": address.id,
        }, headers=auth_headers(buyer))
        order_id = response.json()["orders"][0]["id"]

        response = client.patch(f"/seller/orders/{order_id}/status", json={"status": "paid"}, headers=s_headers)
        assert response.status_code == 200
        assert response.json()["payment_received"] is True

        # KYC gate
        response = client.post("/seller/payouts", json={}, headers=s_headers)
        assert response.status_code == 400

        client.post("/seller/kyc/pan", json={"pan_number": "ABCDE1234F", "pan_name": "Asha"}, headers=s_headers)
        response = client.post("/seller/kyc/bank", json={
            "account_number": "001234567890", "account_holder_name": "Asha", "ifsc_code": "HDFC0001234",
        }, headers=s_headers)
        assert response.json()["last4"] == "7890"
        for doc in ("pan", "bank"):
            response = client.post(f"/admin/kyc/{profile.id}/{doc}", json={"approve": True}, headers=a_headers)
            assert response.status_code == 200
        assert response.json()["kyc_verified"] is True

        response = client.get("/seller/earnings", headers=s_headers)
        assert response.json()["available_for_payout"] == 76.0

        response = client.post("/seller/payouts", json={"request_notes": "weekly"}, headers=s_headers)
        assert response.status_code == 201
        payout = response.json()
        assert payout["amount"] == 76.0
        assert payout["order_ids"] == [order_id]

        response = client.post(f"/admin/payouts/{payout['id']}/process",
                               json={"status": "rejected"}, headers=a_headers)
        assert response.status_code == 400

        response = client.post(f"/admin/payouts/{payout['id']}/process",
                               json={"status": "approved"}, headers=a_headers)
        assert response.status_code == 200
        response = client.post(f"/admin/payouts/{payout['id']}/settle",
                               json={"status": "completed", "transaction_id": "UTR9"}, headers=a_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        wallet = client.get("/admin/wallet", headers=a_headers).json()
        assert Decimal(str(wallet["total_balance"])) == Decimal("4.00")
        assert Decimal(str(wallet["total_payouts_processed"])) == Decimal("76.00")

        # Sellers cannot reach admin routes
        assert client.get("/admin/wallet", headers=s_headers).status_code == 403

    def test_commission_update(self, client, build):
        admin = build.admin()
        headers = auth_headers(admin)
        assert client.get("/admin/commission", headers=headers).json()["commission_percentage"] == 5.0

        response = client.put("/admin/commission", json={"commission_rate": 0.1, "update_note": "Q4"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["commission_rate"] == 0.1

        assert client.put("/admin/commission", json={"commission_rate": 2}, headers=headers).status_code == 422
        assert len(client.get("/admin/commission/history", headers=headers).json()) == 1

    def test_logs_are_admin_only(self, client, build):
        admin = build.admin()
        buyer = build.buyer()
        assert client.get("/logs", headers=auth_headers(buyer)).status_code == 403
        response = client.get("/logs", headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["page"] == 1


class TestEmailVerification:
    def test_otp_flow(self, client, build, ttl_store):
        buyer = build.buyer()
        headers = auth_headers(buyer)

        assert client.post("/verification/email/send", headers=headers).status_code == 200
        code = ttl_store.get(f"otp:{buyer.email}")["otp"]
        wrong = "000000" if code != "000000" else "111111"

        response = client.post("/verification/email/verify", json={"otp": wrong}, headers=headers)
        assert response.status_code == 400
        assert "Invalid OTP" in response.json()["detail"]

        response = client.post("/verification/email/verify", json={"otp": code}, headers=headers)
        assert response.status_code == 200
        assert response.json()["email_verified"] is True

        # Already verified accounts get no new code
        assert client.post("/verification/email/send", headers=headers).status_code == 400
