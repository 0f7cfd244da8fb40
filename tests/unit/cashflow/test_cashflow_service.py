"""Unit tests for CashFlowService manual entries and summaries."""

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.accounts.constants import Role
from modules.accounts.permissions import permission_resolver
from modules.cashflow.constants import EntryType
from modules.cashflow.dtos import CreateEntryDTO, UpdateEntryDTO
from modules.cashflow.exceptions import EntryNotFound, InvalidEntry
from modules.cashflow.models import CashFlowEntry
from modules.cashflow.repositories.django_repository import CashFlowDjangoRepository
from modules.cashflow.services import CashFlowService
from modules.core.exceptions import AuthorizationDenied, ValidationFailed
from modules.orders.constants import PaymentMethod

pytestmark = pytest.mark.unit

UTC = dt_timezone.utc
JAN_10 = datetime(2024, 1, 10, 3, 0, tzinfo=UTC)
JAN_20 = datetime(2024, 1, 20, 3, 0, tzinfo=UTC)


@pytest.fixture()
def service():
    return CashFlowService(
        entry_repository=CashFlowDjangoRepository(),
        permission_resolver=permission_resolver,
    )


def _create(service, role=Role.FINANCIAL, **overrides):
    data = {
        "type": EntryType.EXPENSE,
        "amount": Decimal("80.00"),
        "description": "Conta de luz",
        "payment_date": JAN_10,
    }
    data.update(overrides)
    return service.create(role, CreateEntryDTO(**data))


class TestCreate:
    def test_manual_expense(self, service):
        entry = _create(service)
        assert entry.type == EntryType.EXPENSE
        assert entry.order is None
        assert entry.payment_method is None

    def test_management_cannot_create(self, service):
        with pytest.raises(AuthorizationDenied):
            _create(service, role=Role.MANAGEMENT)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"type": "TRANSFER"},
            {"amount": Decimal("0")},
            {"description": "  "},
            {"payment_method": "CHEQUE"},
        ],
    )
    def test_invalid_input(self, overrides):
        data = {
            "type": EntryType.INCOME,
            "amount": Decimal("10.00"),
            "description": "Venda avulsa",
            "payment_date": JAN_10,
        }
        data.update(overrides)
        with pytest.raises(ValidationError):
            CreateEntryDTO(**data)

    def test_blank_payment_method_becomes_null(self):
        dto = CreateEntryDTO(
            type=EntryType.INCOME,
            amount=Decimal("10.00"),
            description="Venda avulsa",
            payment_date=JAN_10,
            payment_method="",
        )
        assert dto.payment_method is None


class TestUpdateDelete:
    def test_partial_update(self, service):
        entry = _create(service)
        updated = service.update(
            Role.FINANCIAL,
            str(entry.id),
            UpdateEntryDTO(amount=Decimal("95.00"), payment_method=PaymentMethod.PIX),
        )
        assert updated.amount == Decimal("95.00")
        assert updated.description == "Conta de luz"
        assert updated.payment_method == PaymentMethod.PIX

    def test_null_payment_method_clears(self, service):
        entry = _create(service, payment_method=PaymentMethod.CASH)
        updated = service.update(
            Role.FINANCIAL, str(entry.id), UpdateEntryDTO(payment_method=None)
        )
        assert updated.payment_method is None

    def test_required_field_sent_as_null(self, service):
        entry = _create(service)
        with pytest.raises(InvalidEntry) as excinfo:
            service.update(Role.FINANCIAL, str(entry.id), UpdateEntryDTO(description=None))
        assert isinstance(excinfo.value, ValidationFailed)

    def test_update_unknown(self, service):
        with pytest.raises(EntryNotFound):
            service.update(Role.ADMIN, str(uuid4()), UpdateEntryDTO(amount=Decimal("1")))

    def test_delete(self, service):
        entry = _create(service)
        service.delete(Role.FINANCIAL, str(entry.id))
        assert not CashFlowEntry.objects.filter(id=entry.id).exists()

    def test_delete_unknown(self, service):
        with pytest.raises(EntryNotFound):
            service.delete(Role.FINANCIAL, "nope")


class TestListAndSummary:
    def test_filters(self, service):
        _create(service, type=EntryType.INCOME, description="Feira", payment_date=JAN_10)
        late = _create(service, description="Aluguel", payment_date=JAN_20)

        by_date = service.list(Role.FINANCIAL, {"date_from": "2024-01-15"})
        by_type = service.list(Role.FINANCIAL, {"type": EntryType.EXPENSE})
        by_text = service.list(Role.FINANCIAL, {"search": "aluguel"})

        assert [e.id for e in by_date] == [late.id]
        assert [e.id for e in by_type] == [late.id]
        assert [e.id for e in by_text] == [late.id]

    def test_date_to_includes_whole_local_day(self, service):
        # 23:30 local on Jan 20.
        entry = _create(service, payment_date=datetime(2024, 1, 21, 2, 30, tzinfo=UTC))
        result = service.list(Role.FINANCIAL, {"date_to": "2024-01-20"})
        assert [e.id for e in result] == [entry.id]

    def test_invalid_filter(self, service):
        with pytest.raises(InvalidEntry):
            service.list(Role.FINANCIAL, {"date_from": "ontem"})

    def test_list_denied_for_management(self, service):
        with pytest.raises(AuthorizationDenied):
            service.list(Role.MANAGEMENT)

    def test_summarize(self):
        entries = [
            SimpleNamespace(type=EntryType.INCOME, amount=Decimal("100.00")),
            SimpleNamespace(type=EntryType.INCOME, amount=Decimal("50.00")),
            SimpleNamespace(type=EntryType.EXPENSE, amount=Decimal("30.00")),
        ]
        summary = CashFlowService.summarize(entries)
        assert summary.total_income == Decimal("150.00")
        assert summary.total_expense == Decimal("30.00")
        assert summary.balance == Decimal("120.00")
