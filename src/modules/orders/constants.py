"""Order domain constants.

Status and payment-method choices, plus the adjacency table that the
courier self-service surface is bound to.  Staff status changes are not
bound to any table (see ``state_machine.AdminStatusSetter``).
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pendente"
    CONFIRMED = "CONFIRMED", "Confirmado"
    IN_ROUTE = "IN_ROUTE", "Em rota"
    DELIVERED = "DELIVERED", "Entregue"


class PaymentMethod(models.TextChoices):
    PIX = "PIX", "PIX"
    CREDIT_CARD = "CREDIT_CARD", "Cartão de crédito"
    DEBIT_CARD = "DEBIT_CARD", "Cartão de débito"
    CASH = "CASH", "Dinheiro"
    BOLETO = "BOLETO", "Boleto"


class DeliveryAction(models.TextChoices):
    START_ROUTE = "start_route", "Iniciar rota"
    CONFIRM_DELIVERY = "confirm_delivery", "Confirmar entrega"


# action -> (required current status, resulting status)
DELIVERY_TRANSITIONS: dict[str, tuple[str, str]] = {
    DeliveryAction.START_ROUTE: (OrderStatus.CONFIRMED, OrderStatus.IN_ROUTE),
    DeliveryAction.CONFIRM_DELIVERY: (OrderStatus.IN_ROUTE, OrderStatus.DELIVERED),
}

ACTIVE_DELIVERY_STATUSES: tuple[str, ...] = (
    OrderStatus.CONFIRMED,
    OrderStatus.IN_ROUTE,
)

UNASSIGN_BLOCKED_STATUSES: frozenset[str] = frozenset(
    {OrderStatus.IN_ROUTE, OrderStatus.DELIVERED}
)

DEFAULT_PAYMENT_METHOD = PaymentMethod.PIX

# Reminder thresholds, in whole days.
INSTALLMENT_UPCOMING_DAYS = 3
UNPAID_ORDER_UPCOMING_AGE = 3
UNPAID_ORDER_OVERDUE_AGE = 7

LOW_STOCK_THRESHOLD = 10
