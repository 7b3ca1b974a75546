from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from factories import make_catalog_item
from rental_booking.api.dependencies import Actor, ROLE_ADMIN, get_current_actor
from rental_booking.core.config import settings
from rental_booking.database import get_db
from rental_booking.main import app
from rental_booking.models import BookingKind
from rental_booking.services.pricing import repricing

PREFIX = settings.API_V1_STR


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_actor] = lambda: Actor(id=7)
    yield TestClient(app)
    app.dependency_overrides.clear()


def act_as(actor):
    app.dependency_overrides[get_current_actor] = lambda: actor


def booking_payload(item_id, days_ahead=10, **overrides):
    start = datetime.utcnow().replace(microsecond=0) + timedelta(days=days_ahead)
    payload = {
        "kind": "vehicle_rental",
        "catalog_item_id": item_id,
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=2)).isoformat(),
        "selected_options": {"insurance": True, "childSeat": True, "gps": False},
    }
    payload.update(overrides)
    return payload


def create(client, item_id, **overrides):
    response = client.post(f"{PREFIX}/bookings/", json=booking_payload(item_id, **overrides))
    assert response.status_code == 201, response.text
    return response.json()


def test_quote_does_not_save(client, db):
    item = make_catalog_item(db)
    response = client.post(f"{PREFIX}/bookings/quote", json=booking_payload(item.id))
    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["total_amount"]) == Decimal("155.00")
    assert data["currency"] == settings.DEFAULT_CURRENCY
    assert data["surcharge_version"] == "2024-01"
    assert [line["key"] for line in data["lines"]] == ["base", "child_seat", "insurance"]

    mine = client.get(f"{PREFIX}/bookings/me")
    assert mine.json() == []


def test_create_and_read_booking(client, db):
    item = make_catalog_item(db)
    data = create(client, item.id)
    assert data["status"] == "pending"
    assert data["selected_options"] == ["child_seat", "insurance"]
    assert Decimal(data["base_rate"]) == Decimal("50.00")
    assert Decimal(data["total_amount"]) == Decimal("155.00")

    response = client.get(f"{PREFIX}/bookings/{data['id']}")
    assert response.status_code == 200
    assert response.json()["id"] == data["id"]


def test_unknown_option_is_unprocessable(client, db):
    item = make_catalog_item(db)
    response = client.post(
        f"{PREFIX}/bookings/", json=booking_payload(item.id, selected_options=["jetpack"])
    )
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert "selected_options" in detail["field_errors"]


def test_end_before_start_is_unprocessable(client, db):
    item = make_catalog_item(db)
    payload = booking_payload(item.id)
    payload["end_date"] = payload["start_date"]
    response = client.post(f"{PREFIX}/bookings/", json=payload)
    assert response.status_code == 422
    assert "end_date" in response.json()["detail"]["field_errors"]


def test_missing_catalog_item_is_not_found(client):
    response = client.post(f"{PREFIX}/bookings/", json=booking_payload(999))
    assert response.status_code == 404


def test_kind_mismatch_is_bad_request(client, db):
    item = make_catalog_item(db, kind=BookingKind.MOVING_SERVICE)
    response = client.post(f"{PREFIX}/bookings/", json=booking_payload(item.id))
    assert response.status_code == 400


def test_schema_validation_errors(client):
    response = client.post(f"{PREFIX}/bookings/", json={"kind": "vehicle_rental"})
    assert response.status_code == 422
    assert any(err["loc"][-1] == "catalog_item_id" for err in response.json()["detail"])


def test_update_reprices(client, db):
    item = make_catalog_item(db)
    data = create(client, item.id)
    end = datetime.fromisoformat(data["end_date"]) + timedelta(days=1)
    response = client.patch(
        f"{PREFIX}/bookings/{data['id']}",
        json={"end_date": end.isoformat(), "selected_options": ["gps"]},
    )
    assert response.status_code == 200, response.text
    updated = response.json()
    assert updated["duration_units"] == 3
    assert Decimal(updated["total_amount"]) == Decimal("174.00")
    assert updated["version_id"] == data["version_id"] + 1


def test_derived_fields_are_rejected(client, db):
    item = make_catalog_item(db)
    data = create(client, item.id)
    response = client.patch(f"{PREFIX}/bookings/{data['id']}", json={"total_amount": "1.00"})
    assert response.status_code == 422


def test_discount_is_admin_only(client, db):
    item = make_catalog_item(db)
    data = create(client, item.id)
    response = client.patch(f"{PREFIX}/bookings/{data['id']}", json={"discount": "20"})
    assert response.status_code == 403

    act_as(Actor(id=1, role=ROLE_ADMIN))
    response = client.patch(f"{PREFIX}/bookings/{data['id']}", json={"discount": "20"})
    assert response.status_code == 200
    assert Decimal(response.json()["total_amount"]) == Decimal("135.00")


def test_other_users_cannot_see_booking(client, db):
    item = make_catalog_item(db)
    data = create(client, item.id)
    act_as(Actor(id=8))
    assert client.get(f"{PREFIX}/bookings/{data['id']}").status_code == 403
    assert client.get(f"{PREFIX}/bookings/12345").status_code == 404


def test_cancellation_preview_and_cancel(client, db):
    item = make_catalog_item(db)
    data = create(client, item.id)

    preview = client.get(f"{PREFIX}/bookings/{data['id']}/cancellation-preview").json()
    assert preview["eligible"] is True
    assert preview["refund_tier_percent"] == 90
    assert Decimal(preview["refund_amount"]) == Decimal("139.50")

    response = client.post(f"{PREFIX}/bookings/{data['id']}/cancel", json={"reason": "sick"})
    assert response.status_code == 200
    cancelled = response.json()
    assert cancelled["status"] == "cancelled"
    assert cancelled["cancellation_reason"] == "sick"
    assert Decimal(cancelled["refund_amount"]) == Decimal("139.50")

    again = client.post(f"{PREFIX}/bookings/{data['id']}/cancel", json={})
    assert again.status_code == 409

    frozen = client.patch(f"{PREFIX}/bookings/{data['id']}", json={"selected_options": []})
    assert frozen.status_code == 409


def test_late_cancellation_is_bad_request(client, db):
    item = make_catalog_item(db)
    start = datetime.utcnow() + timedelta(hours=12)
    data = create(
        client,
        item.id,
        start_date=start.isoformat(),
        end_date=(start + timedelta(days=1)).isoformat(),
    )
    response = client.post(f"{PREFIX}/bookings/{data['id']}/cancel", json={})
    assert response.status_code == 400
    assert client.get(f"{PREFIX}/bookings/{data['id']}").json()["status"] == "pending"


def test_status_change_requires_admin(client, db):
    item = make_catalog_item(db)
    data = create(client, item.id)
    url = f"{PREFIX}/bookings/{data['id']}/status"
    assert client.patch(url, json={"status": "confirmed"}).status_code == 403

    act_as(Actor(id=1, role=ROLE_ADMIN))
    response = client.patch(url, json={"status": "confirmed"})
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"
    assert client.patch(url, json={"status": "completed"}).status_code == 409


def test_payment(client, db):
    item = make_catalog_item(db)
    data = create(client, item.id)
    url = f"{PREFIX}/bookings/{data['id']}/payment"

    wrong = client.post(url, json={"method": "card", "amount": "100.00"})
    assert wrong.status_code == 400

    paid = client.post(url, json={"method": "card", "amount": "155.00"})
    assert paid.status_code == 200
    assert paid.json()["payment_status"] == "paid"


def test_catalog_price_update(client, db):
    act_as(Actor(id=1, role=ROLE_ADMIN))
    response = client.post(
        f"{PREFIX}/catalog/",
        json={"kind": "moving_service", "name": "Two movers", "unit_price": "500", "deposit": "100"},
    )
    assert response.status_code == 201
    item = response.json()

    response = client.patch(f"{PREFIX}/catalog/{item['id']}", json={"unit_price": "550"})
    assert response.status_code == 200
    assert Decimal(response.json()["unit_price"]) == Decimal("550.00")

    act_as(Actor(id=7))
    response = client.patch(f"{PREFIX}/catalog/{item['id']}", json={"unit_price": "1"})
    assert response.status_code == 403


def test_real_token_is_accepted(db):
    item = make_catalog_item(db)
    app.dependency_overrides[get_db] = lambda: db
    try:
        client = TestClient(app)
        token = jwt.encode({"sub": "7", "role": "user"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        response = client.post(
            f"{PREFIX}/bookings/",
            json=booking_payload(item.id),
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 201
        assert response.json()["user_id"] == 7

        bad = client.get(f"{PREFIX}/bookings/me", headers={"Authorization": "Bearer nonsense"})
        assert bad.status_code == 401
        assert client.get(f"{PREFIX}/bookings/me").status_code == 401
    finally:
        app.dependency_overrides.clear()


def test_totals_are_exposed_in_cents(client, db):
    item = make_catalog_item(db)
    quote = client.post(f"{PREFIX}/bookings/quote", json=booking_payload(item.id)).json()
    assert quote["total_amount_minor"] == 15500

    data = create(client, item.id)
    assert data["total_amount_minor"] == 15500


def test_quote_prices_the_draft_once(client, db, monkeypatch):
    item = make_catalog_item(db)
    calls = []
    original = repricing.reprice_booking

    def counting(booking, table=None):
        calls.append(booking)
        return original(booking, table)

    monkeypatch.setattr(repricing, "reprice_booking", counting)
    response = client.post(f"{PREFIX}/bookings/quote", json=booking_payload(item.id))
    assert response.status_code == 200
    assert len(calls) == 1


@pytest.mark.parametrize("amount", ["1e30", "155.001", "NaN"])
def test_unrepresentable_payment_amount_is_unprocessable(client, db, amount):
    item = make_catalog_item(db)
    data = create(client, item.id)
    response = client.post(
        f"{PREFIX}/bookings/{data['id']}/payment", json={"method": "card", "amount": amount}
    )
    assert response.status_code == 422
    assert client.get(f"{PREFIX}/bookings/{data['id']}").json()["payment_status"] == "pending"


@pytest.mark.parametrize("field,value", [("discount", "1e30"), ("base_rate", "1e30"), ("base_rate", "NaN")])
def test_unrepresentable_admin_amounts_are_unprocessable(client, db, field, value):
    item = make_catalog_item(db)
    data = create(client, item.id)
    act_as(Actor(id=1, role=ROLE_ADMIN))
    response = client.patch(f"{PREFIX}/bookings/{data['id']}", json={field: value})
    assert response.status_code == 422
    assert Decimal(client.get(f"{PREFIX}/bookings/{data['id']}").json()["total_amount"]) == Decimal("155.00")


def test_null_admin_fields_are_ignored_for_customers(client, db):
    item = make_catalog_item(db)
    data = create(client, item.id)
    response = client.patch(
        f"{PREFIX}/bookings/{data['id']}",
        json={"discount": None, "base_rate": None, "selected_options": ["gps"]},
    )
    assert response.status_code == 200, response.text
    updated = response.json()
    assert updated["selected_options"] == ["gps"]
    assert Decimal(updated["discount"]) == Decimal("0.00")
    assert Decimal(updated["total_amount"]) == Decimal("116.00")
