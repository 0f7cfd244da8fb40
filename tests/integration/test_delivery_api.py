"""Integration tests for the courier surface and the delivery roster."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from modules.accounts.constants import Role
from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration

DELIVERY_URL = "/api/v1/delivery/orders/"
ROSTER_URL = "/api/v1/delivery-persons/"


class TestCourierList:
    def test_only_own_orders(self, client_for, courier, make_user, make_order):
        mine = make_order(OrderStatus.CONFIRMED, delivery_person=courier)
        make_order(
            OrderStatus.CONFIRMED, delivery_person=make_user(Role.DELIVERY)
        )
        make_order(OrderStatus.CONFIRMED)

        response = client_for(courier).get(DELIVERY_URL)

        assert response.status_code == 200
        assert [row["id"] for row in response.data["orders"]] == [str(mine.id)]

    def test_status_filter(self, client_for, courier, make_order):
        make_order(OrderStatus.CONFIRMED, delivery_person=courier)
        in_route = make_order(OrderStatus.IN_ROUTE, delivery_person=courier)

        response = client_for(courier).get(DELIVERY_URL, {"status": "IN_ROUTE"})

        assert [row["id"] for row in response.data["orders"]] == [str(in_route.id)]

    def test_delivered_on_a_local_day(self, client_for, courier, make_order):
        delivered = make_order(OrderStatus.DELIVERED, delivery_person=courier)
        client = client_for(courier)
        today = timezone.localdate()

        response = client.get(
            DELIVERY_URL, {"status": "DELIVERED", "date": today.isoformat()}
        )
        assert [row["id"] for row in response.data["orders"]] == [str(delivered.id)]

        yesterday = (today - timedelta(days=1)).isoformat()
        response = client.get(DELIVERY_URL, {"status": "DELIVERED", "date": yesterday})
        assert response.data["orders"] == []

    def test_bad_date_is_400(self, client_for, courier):
        response = client_for(courier).get(
            DELIVERY_URL, {"status": "DELIVERED", "date": "15/01/2024"}
        )
        assert response.status_code == 400

    def test_bad_status_is_400(self, client_for, courier):
        response = client_for(courier).get(DELIVERY_URL, {"status": "LOST"})
        assert response.status_code == 400
        assert response.data == {"detail": "Invalid status filter."}

    @pytest.mark.parametrize("fixture", ["admin_user", "customer"])
    def test_non_courier_is_403(self, request, client_for, fixture):
        client = client_for(request.getfixturevalue(fixture))
        assert client.get(DELIVERY_URL).status_code == 403


class TestCourierActions:
    def patch(self, client, order, action):
        return client.patch(f"{DELIVERY_URL}{order.id}/", {"action": action}, format="json")

    def test_route_then_deliver(self, client_for, courier, make_order):
        order = make_order(OrderStatus.CONFIRMED, delivery_person=courier)
        client = client_for(courier)

        response = self.patch(client, order, "start_route")
        assert response.status_code == 200
        assert response.data["status"] == OrderStatus.IN_ROUTE

        response = self.patch(client, order, "confirm_delivery")
        assert response.status_code == 200
        assert response.data["status"] == OrderStatus.DELIVERED
        assert response.data["paid_at"] is None

    def test_skipping_a_step_is_400(self, client_for, courier, make_order):
        order = make_order(OrderStatus.CONFIRMED, delivery_person=courier)
        response = self.patch(client_for(courier), order, "confirm_delivery")
        assert response.status_code == 400
        order.refresh_from_db()
        assert order.status == OrderStatus.CONFIRMED

    def test_unknown_action_is_400(self, client_for, courier, make_order):
        order = make_order(OrderStatus.CONFIRMED, delivery_person=courier)
        response = self.patch(client_for(courier), order, "teleport")
        assert response.status_code == 400

    def test_missing_action_is_400(self, client_for, courier, make_order):
        order = make_order(OrderStatus.CONFIRMED, delivery_person=courier)
        response = client_for(courier).patch(
            f"{DELIVERY_URL}{order.id}/", {}, format="json"
        )
        assert response.status_code == 400
        assert "action" in response.data

    def test_other_couriers_order_is_403(
        self, client_for, courier, make_user, make_order
    ):
        order = make_order(
            OrderStatus.CONFIRMED, delivery_person=make_user(Role.DELIVERY)
        )
        response = self.patch(client_for(courier), order, "start_route")
        assert response.status_code == 403
        assert response.data == {"detail": "This order is not assigned to you."}

    def test_unknown_order_is_404(self, client_for, courier):
        response = client_for(courier).patch(
            f"{DELIVERY_URL}0190a1b2-0000-7000-8000-000000000000/",
            {"action": "start_route"},
            format="json",
        )
        assert response.status_code == 404


class TestRoster:
    def test_lists_couriers_with_counters(self, client_for, admin_user, courier, make_order):
        make_order(OrderStatus.CONFIRMED, delivery_person=courier)
        make_order(OrderStatus.DELIVERED, delivery_person=courier)

        response = client_for(admin_user).get(ROSTER_URL)

        assert response.status_code == 200
        assert len(response.data) == 1
        row = response.data[0]
        assert row["name"] == "Carlos Entregador"
        assert row["active_deliveries"] == 1
        assert row["total_deliveries"] == 2

    def test_financial_cannot_view(self, client_for, financial_user):
        assert client_for(financial_user).get(ROSTER_URL).status_code == 403

    def test_promote_customer(self, client_for, management_user, customer):
        response = client_for(management_user).post(
            ROSTER_URL, {"email": customer.email}, format="json"
        )
        assert response.status_code == 201
        assert response.data["role"] == Role.DELIVERY
        assert response.data["active_deliveries"] == 0
        customer.refresh_from_db()
        assert customer.role == Role.DELIVERY

    def test_promote_unknown_email_is_404(self, client_for, admin_user):
        response = client_for(admin_user).post(
            ROSTER_URL, {"email": "ghost@example.com"}, format="json"
        )
        assert response.status_code == 404
        assert response.data == {"detail": "User not found."}

    def test_promote_staff_is_400(self, client_for, admin_user, financial_user):
        response = client_for(admin_user).post(
            ROSTER_URL, {"email": financial_user.email}, format="json"
        )
        assert response.status_code == 400
        financial_user.refresh_from_db()
        assert financial_user.role == Role.FINANCIAL

    def test_demote_idle_courier(self, client_for, admin_user, courier, make_order):
        make_order(OrderStatus.DELIVERED, delivery_person=courier)

        response = client_for(admin_user).delete(f"{ROSTER_URL}{courier.id}/")

        assert response.status_code == 200
        assert response.data["user"]["role"] == Role.USER
        courier.refresh_from_db()
        assert courier.role == Role.USER

    def test_demote_busy_courier_is_400(self, client_for, admin_user, courier, make_order):
        make_order(OrderStatus.IN_ROUTE, delivery_person=courier)

        response = client_for(admin_user).delete(f"{ROSTER_URL}{courier.id}/")

        assert response.status_code == 400
        assert "1 delivery(ies) in progress" in response.data["detail"]
        courier.refresh_from_db()
        assert courier.role == Role.DELIVERY

    def test_itinerary(self, client_for, admin_user, courier, make_order):
        confirmed = make_order(OrderStatus.CONFIRMED, delivery_person=courier)
        in_route = make_order(OrderStatus.IN_ROUTE, delivery_person=courier)
        make_order(OrderStatus.PENDING, delivery_person=courier)

        response = client_for(admin_user).get(f"{ROSTER_URL}{courier.id}/orders/")

        assert response.status_code == 200
        assert response.data["delivery_person"]["id"] == str(courier.id)
        assert [row["id"] for row in response.data["confirmed"]] == [str(confirmed.id)]
        assert [row["id"] for row in response.data["in_route"]] == [str(in_route.id)]
        assert response.data["delivered"] == []

    def test_itinerary_is_admin_only(self, client_for, management_user, courier):
        response = client_for(management_user).get(f"{ROSTER_URL}{courier.id}/orders/")
        assert response.status_code == 403

    def test_itinerary_of_customer_is_400(self, client_for, admin_user, customer):
        response = client_for(admin_user).get(f"{ROSTER_URL}{customer.id}/orders/")
        assert response.status_code == 400
