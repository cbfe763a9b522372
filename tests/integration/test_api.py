"""HTTP-level tests: routing, envelopes, auth guards and the checkout flow."""

from decimal import Decimal

import pytest
from services.store_service.models import Product
from tests.factories import (
    DEFAULT_PASSWORD,
    auth_headers,
    make_product,
    make_user,
    order_payload,
)

API = "/api/v1"


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    """Test the readiness endpoint."""
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_route_uses_error_envelope(client):
    response = await client.get(f"{API}/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["status"] == "error"
    assert body["code"] == "HTTP_404"


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_login_and_me(client):
    """POST /auth/register, POST /auth/login, GET /auth/me."""
    register = await client.post(
        f"{API}/auth/register",
        json={
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@test.com",
            "password": "secret-pass",
        },
    )
    assert register.status_code == 201
    assert register.json()["status"] == "success"
    assert register.json()["data"]["user"]["role"]["name"] == "customer"

    login = await client.post(
        f"{API}/auth/login",
        json={"email": "ada@test.com", "password": "secret-pass"},
    )
    assert login.status_code == 200
    access_token = login.json()["data"]["access_token"]

    me = await client.get(
        f"{API}/auth/me", headers={"Authorization": f"Bearer {access_token}"}
    )
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "ada@test.com"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_duplicate_registration_names_the_field(client, db_session):
    user = await make_user(db_session)

    response = await client.post(
        f"{API}/auth/register",
        json={
            "first_name": "Dup",
            "last_name": "User",
            "email": user.email,
            "password": "secret-pass",
        },
    )

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "CONFLICT"
    assert body["field"] == "email"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_wrong_password_is_unauthorized(client, db_session):
    user = await make_user(db_session)

    response = await client.post(
        f"{API}/auth/login", json={"email": user.email, "password": "wrong-pass"}
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_validation_errors_are_listed(client):
    response = await client.post(
        f"{API}/auth/register",
        json={"first_name": "", "last_name": "X", "email": "not-an-email"},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_FAILED"
    assert len(body["errors"]) >= 3
    assert "stack" not in body


@pytest.mark.asyncio
@pytest.mark.integration
async def test_protected_route_without_token(client):
    response = await client.get(f"{API}/cart")

    assert response.status_code == 401
    assert response.json() == {
        "status": "error",
        "message": "Not authorized to access this route",
        "code": "UNAUTHORIZED",
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customer_cannot_create_products(client, db_session):
    """Only sellers and admins may create products."""
    customer = await make_user(db_session)

    response = await client.post(
        f"{API}/products",
        json={"name": "Lamp", "description": "Bright", "price": "10.00"},
        headers=auth_headers(customer),
    )

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_over_http(client, db_session, notifier):
    """POST /cart/add, POST /orders, POST /orders/{id}/pay."""
    customer = await make_user(db_session)
    admin = await make_user(db_session, role="admin")
    product = await make_product(db_session, price=Decimal("100.00"), stock=10)
    headers = auth_headers(customer)

    cart = await client.post(
        f"{API}/cart/add",
        json={"product_id": str(product.id), "quantity": 2},
        headers=headers,
    )
    assert cart.status_code == 200
    assert Decimal(str(cart.json()["data"]["total"])) == Decimal("216.00")

    created = await client.post(f"{API}/orders", json=order_payload(), headers=headers)
    assert created.status_code == 201
    order = created.json()["data"]
    assert order["order_status"] == "pending"
    assert Decimal(str(order["subtotal"])) == Decimal("200.00")
    assert Decimal(str(order["tax"])) == Decimal("16.00")
    assert order["order_number"].endswith("-0001")

    product = await db_session.get(Product, product.id, populate_existing=True)
    assert product.stock == 8
    assert notifier.subjects_for(customer.email) == [
        f"Order Confirmation - {order['order_number']}"
    ]

    cart_after = await client.get(f"{API}/cart", headers=headers)
    assert cart_after.json()["data"]["items"] == []

    forbidden = await client.post(
        f"{API}/orders/{order['id']}/pay",
        json={"transaction_id": "txn_1"},
        headers=headers,
    )
    assert forbidden.status_code == 403

    paid = await client.post(
        f"{API}/orders/{order['id']}/pay",
        json={"transaction_id": "txn_1"},
        headers=auth_headers(admin),
    )
    assert paid.status_code == 200
    assert paid.json()["data"]["payment_status"] == "completed"
    assert paid.json()["data"]["order_status"] == "confirmed"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_with_empty_cart(client, db_session):
    customer = await make_user(db_session)

    response = await client.post(
        f"{API}/orders", json=order_payload(), headers=auth_headers(customer)
    )

    assert response.status_code == 400
    assert response.json()["code"] == "EMPTY_CART"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_login_then_browse_public_catalog(client, db_session):
    await make_product(db_session, name="Visible Lamp")
    await make_product(db_session, name="Hidden Lamp", is_active=False)

    response = await client.get(f"{API}/products", params={"search": "Lamp"})

    assert response.status_code == 200
    names = [item["name"] for item in response.json()["data"]["items"]]
    assert names == ["Visible Lamp"]

    user = await make_user(db_session)
    login = await client.post(
        f"{API}/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
    )
    assert login.status_code == 200
