"""Integration tests for the cash flow ledger endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest
from django.utils import timezone

from modules.cashflow.constants import EntryType
from modules.cashflow.models import CashFlowEntry

pytestmark = pytest.mark.integration

URL = "/api/v1/cashflow/"


def local(year, month, day, hour=0, minute=0):
    return timezone.make_aware(datetime(year, month, day, hour, minute))


@pytest.fixture()
def entries(make_order):
    order = make_order(phone="11955554444")
    return [
        CashFlowEntry.objects.create(
            type=EntryType.INCOME,
            amount=Decimal("115.00"),
            description="Pagamento do pedido",
            payment_method="PIX",
            payment_date=local(2024, 3, 10, 23, 30),
            order=order,
        ),
        CashFlowEntry.objects.create(
            type=EntryType.EXPENSE,
            amount=Decimal("40.00"),
            description="Combustível",
            payment_date=local(2024, 3, 11, 9),
        ),
        CashFlowEntry.objects.create(
            type=EntryType.INCOME,
            amount=Decimal("20.00"),
            description="Venda avulsa",
            payment_date=local(2024, 2, 28, 12),
        ),
    ]


class TestList:
    def test_entries_and_summary(self, client_for, financial_user, entries):
        response = client_for(financial_user).get(URL)

        assert response.status_code == 200
        assert [row["description"] for row in response.data["entries"]] == [
            "Combustível",
            "Pagamento do pedido",
            "Venda avulsa",
        ]
        assert response.data["summary"] == {
            "total_income": "135.00",
            "total_expense": "40.00",
            "balance": "95.00",
        }

    def test_date_range_uses_local_days(self, client_for, financial_user, entries):
        response = client_for(financial_user).get(
            URL, {"date_from": "2024-03-01", "date_to": "2024-03-10"}
        )
        assert [row["description"] for row in response.data["entries"]] == [
            "Pagamento do pedido"
        ]
        assert response.data["summary"]["balance"] == "115.00"

    def test_type_filter(self, client_for, financial_user, entries):
        response = client_for(financial_user).get(URL, {"type": "EXPENSE"})
        assert [row["type"] for row in response.data["entries"]] == ["EXPENSE"]
        assert response.data["summary"]["balance"] == "-40.00"

    def test_search_matches_order_phone(self, client_for, financial_user, entries):
        response = client_for(financial_user).get(URL, {"search": "95555"})
        assert len(response.data["entries"]) == 1
        assert response.data["entries"][0]["order"]["phone"] == "11955554444"

    def test_bad_type_filter_is_400(self, client_for, financial_user):
        response = client_for(financial_user).get(URL, {"type": "REFUND"})
        assert response.status_code == 400

    def test_management_is_403(self, client_for, management_user):
        assert client_for(management_user).get(URL).status_code == 403


class TestCreate:
    def test_creates_manual_entry(self, client_for, financial_user):
        response = client_for(financial_user).post(
            URL,
            {
                "type": "EXPENSE",
                "amount": "250.00",
                "description": "Aluguel",
                "payment_date": "2024-03-05",
                "payment_method": "BOLETO",
            },
            format="json",
        )

        assert response.status_code == 201
        assert response.data["order"] is None
        assert response.data["payment_date"].startswith("2024-03-05T00:00:00")
        assert CashFlowEntry.objects.get(id=response.data["id"]).amount == Decimal("250.00")

    def test_zero_amount_is_400(self, client_for, financial_user):
        response = client_for(financial_user).post(
            URL,
            {
                "type": "INCOME",
                "amount": "0",
                "description": "Nada",
                "payment_date": "2024-03-05",
            },
            format="json",
        )
        assert response.status_code == 400
        assert not CashFlowEntry.objects.exists()

    def test_missing_description_is_400(self, client_for, financial_user):
        response = client_for(financial_user).post(
            URL,
            {"type": "INCOME", "amount": "10", "payment_date": "2024-03-05"},
            format="json",
        )
        assert response.status_code == 400
        assert "description" in response.data

    def test_bad_payment_method_is_400(self, client_for, financial_user):
        response = client_for(financial_user).post(
            URL,
            {
                "type": "INCOME",
                "amount": "10",
                "description": "Venda",
                "payment_date": "2024-03-05",
                "payment_method": "CHEQUE",
            },
            format="json",
        )
        assert response.status_code == 400


class TestDetail:
    def test_retrieve(self, client_for, admin_user, entries):
        response = client_for(admin_user).get(f"{URL}{entries[1].id}/")
        assert response.status_code == 200
        assert response.data["amount"] == "40.00"

    def test_patch_only_sent_fields(self, client_for, financial_user, entries):
        entry = entries[0]
        response = client_for(financial_user).patch(
            f"{URL}{entry.id}/", {"payment_method": None}, format="json"
        )

        assert response.status_code == 200
        entry.refresh_from_db()
        assert entry.payment_method is None
        assert entry.amount == Decimal("115.00")
        assert entry.description == "Pagamento do pedido"

    def test_patch_zero_amount_is_400(self, client_for, financial_user, entries):
        response = client_for(financial_user).patch(
            f"{URL}{entries[1].id}/", {"amount": "0"}, format="json"
        )
        assert response.status_code == 400

    def test_delete(self, client_for, financial_user, entries):
        response = client_for(financial_user).delete(f"{URL}{entries[2].id}/")
        assert response.status_code == 204
        assert not CashFlowEntry.objects.filter(id=entries[2].id).exists()

    def test_unknown_entry_is_404(self, client_for, financial_user):
        response = client_for(financial_user).delete(
            f"{URL}0190a1b2-0000-7000-8000-000000000000/"
        )
        assert response.status_code == 404
        assert response.data == {"detail": "Cash flow entry not found."}
