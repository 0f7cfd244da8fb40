"""End-to-end business scenarios through the HTTP API.

A. Non-BOLETO payment creates exactly one INCOME entry for the total.
B. BOLETO installments drive the order's ``paid_at`` both ways.
C. Reassignment allowed; unassignment blocked once IN_ROUTE.
D. A courier cannot advance another courier's order.
E. Unpaid board reports BOLETO urgency from the next due date.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from modules.accounts.constants import Role
from modules.cashflow.constants import EntryType
from modules.cashflow.models import CashFlowEntry
from modules.core.dates import LocalCalendarDate
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.models import Order
from modules.zones.models import DeliveryZone

pytestmark = pytest.mark.integration


@pytest.fixture()
def admin_client(client_for, admin_user):
    return client_for(admin_user)


class TestScenarioA:
    def test_payment_creates_single_income_entry(
        self, client_for, customer, admin_client, product
    ):
        zone = DeliveryZone.objects.create(
            city="Guarulhos", state="SP", delivery_fee=Decimal("10.00")
        )
        checkout = client_for(customer).post(
            "/api/v1/shop/orders/",
            {
                "items": [{"product_id": str(product.id), "quantity": 1}],
                "delivery_zone_id": str(zone.id),
                "customer_name": "Maria Silva",
                "phone": "11988887777",
                "delivery_address": "Rua das Flores",
                "delivery_number": "10",
                "delivery_neighborhood": "Centro",
            },
            format="json",
        )
        assert checkout.status_code == 201
        assert checkout.data["total"] == "110.00"
        order_id = checkout.data["id"]

        response = admin_client.patch(
            f"/api/v1/orders/{order_id}/",
            {"paid_at": "2024-01-15", "payment_method": "PIX"},
            format="json",
        )
        assert response.status_code == 200

        entries = CashFlowEntry.objects.filter(order_id=order_id)
        assert entries.count() == 1
        entry = entries.get()
        assert entry.type == EntryType.INCOME
        assert entry.amount == Decimal("110.00")
        assert entry.payment_date == LocalCalendarDate(2024, 1, 15).to_local_midnight()


class TestScenarioB:
    def test_installments_drive_order_payment(self, admin_client, make_order):
        order = make_order(payment_method=PaymentMethod.BOLETO)
        base = f"/api/v1/orders/{order.id}/installments/"

        created = admin_client.post(
            base,
            {
                "installments": [
                    {"amount": "55.00", "due_date": "2024-02-10"},
                    {"amount": "55.00", "due_date": "2024-03-10T00:00:00.000Z"},
                ]
            },
            format="json",
        )
        assert created.status_code == 201
        first, second = created.data
        assert second["due_date"] == "2024-03-10"

        def toggle(installment, paid, payment_date=None):
            body = {"paid": paid}
            if payment_date:
                body["payment_date"] = payment_date
            response = admin_client.patch(
                f"{base}{installment['id']}/pay/", body, format="json"
            )
            assert response.status_code == 200
            return response

        toggle(first, True, "2024-02-09")
        order.refresh_from_db()
        assert order.paid_at is None
        assert CashFlowEntry.objects.filter(order=order).count() == 1

        toggle(second, True, "2024-03-08")
        order.refresh_from_db()
        assert order.paid_at == LocalCalendarDate(2024, 3, 8).to_local_midnight()
        assert CashFlowEntry.objects.filter(order=order).count() == 2

        response = toggle(first, False)
        assert response.data["order_paid_at"] is None
        order.refresh_from_db()
        assert order.paid_at is None
        assert CashFlowEntry.objects.filter(order=order).count() == 1


class TestScenarioC:
    def test_reassign_then_unassign_blocked_in_route(
        self, admin_client, make_order, courier, make_user
    ):
        order = make_order(status=OrderStatus.CONFIRMED)
        url = f"/api/v1/orders/{order.id}/assign/"

        first = admin_client.post(url, {"delivery_person_id": str(courier.id)}, format="json")
        assert first.status_code == 200
        assert first.data["delivery_person"]["id"] == str(courier.id)

        other = make_user(Role.DELIVERY)
        second = admin_client.post(url, {"delivery_person_id": str(other.id)}, format="json")
        assert second.status_code == 200
        assert second.data["status"] == OrderStatus.CONFIRMED

        admin_client.patch(
            f"/api/v1/orders/{order.id}/", {"status": "IN_ROUTE"}, format="json"
        )
        response = admin_client.delete(url)
        assert response.status_code == 400
        order.refresh_from_db()
        assert order.delivery_person_id == other.id


class TestScenarioD:
    def test_courier_scoping(self, client_for, make_order, courier, make_user):
        intruder = make_user(Role.DELIVERY)
        order = make_order(status=OrderStatus.CONFIRMED, delivery_person=courier)

        response = client_for(intruder).patch(
            f"/api/v1/delivery/orders/{order.id}/",
            {"action": "start_route"},
            format="json",
        )

        assert response.status_code == 403
        assert response.data == {"detail": "This order is not assigned to you."}
        assert Order.objects.get(id=order.id).status == OrderStatus.CONFIRMED


class TestScenarioE:
    def test_boleto_due_in_two_days_is_upcoming(self, admin_client, make_order):
        order = make_order(payment_method=PaymentMethod.BOLETO)
        due = timezone.localdate() + timedelta(days=2)
        order.installments.create(
            installment_number=1, amount=Decimal("115.00"), due_date=due
        )

        response = admin_client.get("/api/v1/orders/unpaid/")

        assert response.status_code == 200
        row = response.data["orders"][0]
        assert row["urgency_level"] == "upcoming"
        assert row["days_until_due"] == 2
        assert row["next_due_date"] == due.isoformat()
        assert [o["id"] for o in response.data["upcoming"]] == [str(order.id)]
