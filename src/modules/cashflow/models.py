"""Cash flow ledger entry.

Entries come from three places: a non-BOLETO order being marked paid
(one entry per order, ``installment_number`` NULL), a BOLETO installment
being marked paid (one entry per ``(order, installment_number)``) and
manual entries created by financial staff (no order).  The two partial
unique constraints make the automatic upserts idempotent at the database
level.  Replacing a BOLETO schedule detaches the old installment entries
(``installment_number`` NULL, method BOLETO): they stay in the ledger as
received money and fall outside both constraints.

``order`` is a weak link: deleting an order would keep its entries.
"""

from __future__ import annotations

from django.db import models

from modules.cashflow.constants import EntryType
from modules.core.models import BaseModel
from modules.orders.constants import PaymentMethod


class CashFlowEntry(BaseModel):
    type = models.CharField(max_length=10, choices=EntryType.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=255)
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        null=True,
        blank=True,
    )
    payment_date = models.DateTimeField()
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cash_flow_entries",
    )
    installment_number = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        db_table = "cash_flow_entries"
        ordering = ["-payment_date", "-created_at"]
        indexes = [
            models.Index(fields=["-payment_date"], name="cash_flow_payment_date_idx"),
            models.Index(fields=["type"], name="cash_flow_type_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=models.Q(
                    order__isnull=False, installment_number__isnull=True
                )
                & ~models.Q(payment_method=PaymentMethod.BOLETO),
                name="cash_flow_one_entry_per_order",
            ),
            models.UniqueConstraint(
                fields=["order", "installment_number"],
                condition=models.Q(
                    order__isnull=False, installment_number__isnull=False
                ),
                name="cash_flow_one_entry_per_installment",
            ),
        ]

    @property
    def is_income(self) -> bool:
        return self.type == EntryType.INCOME

    def __str__(self) -> str:
        return f"{self.type} {self.amount} ({self.description})"
