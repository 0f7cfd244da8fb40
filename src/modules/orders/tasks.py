"""Periodic tasks of the orders module."""

from celery import shared_task

from modules.accounts.permissions import permission_resolver
from modules.orders.reminders import ReminderService
from modules.orders.repositories.django_repository import OrderDjangoRepository


@shared_task(name="orders.scan_payment_reminders")
def scan_payment_reminders():
    """Count the unpaid orders and installments that need a reminder.

    Sending the reminders is someone else's job; this task only decides
    that they are due and reports the numbers.
    """
    service = ReminderService(
        order_repository=OrderDjangoRepository(),
        permission_resolver=permission_resolver,
    )
    return service.scan()
