"""Cash flow constants."""

from django.db import models


class EntryType(models.TextChoices):
    INCOME = "INCOME", "Entrada"
    EXPENSE = "EXPENSE", "Saída"


INSTALLMENT_ENTRY_DESCRIPTION = "Parcela {number} do pedido #{order}"
ORDER_ENTRY_DESCRIPTION = "Pagamento do pedido #{order}"
