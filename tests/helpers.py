"""Builders shared by the test modules."""

from decimal import Decimal
from typing import Optional

from fastapi.testclient import TestClient

from storefront.models import CartLine


def make_line(
    product_id: str = "p1",
    variant_id: Optional[str] = None,
    price: str = "150",
    quantity: int = 1,
    name: str = "Margherita",
    label: Optional[str] = None,
) -> CartLine:
    """Helper to build a cart line."""
    return CartLine(
        product_id=product_id,
        variant_id=variant_id,
        product_name=name,
        variant_label=label,
        unit_price=Decimal(price),
        quantity=quantity,
    )


def sign_up(client: TestClient, email: str = "guest@example.com", full_name: str = "Ravi Kumar") -> dict:
    """Create an account through the API; the client keeps the session cookie."""
    response = client.post(
        "/api/auth/signup",
        json={"email": email, "password": "secret123", "full_name": full_name},
    )
    assert response.status_code == 200, response.text
    return response.json()


def onboard(client: TestClient, address: Optional[str] = None, phone: str = "9876543210") -> dict:
    payload = {"full_name": "Ravi Kumar", "phone": phone}
    if address is not None:
        payload["address"] = address
    response = client.post("/api/profile/onboarding", json=payload)
    assert response.status_code == 200, response.text
    return response.json()
