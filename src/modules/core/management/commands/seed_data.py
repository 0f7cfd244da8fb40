from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.accounts.constants import Role
from modules.accounts.models import User
from modules.core.dates import LocalCalendarDate
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.models import BoletoInstallment, Order, OrderItem
from modules.products.models import Product
from modules.zones.models import DeliveryZone


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        zones = self._seed_zones()
        products = self._seed_products()
        orders_created = self._seed_orders(users, zones, products)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"zones={len(zones)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> dict[str, User]:
        self.stdout.write("Creating users...")
        accounts = [
            ("admin", "Administrador", Role.ADMIN),
            ("financeiro", "Equipe Financeira", Role.FINANCIAL),
            ("gerencia", "Gerência", Role.MANAGEMENT),
            ("entregador", "Carlos Entregador", Role.DELIVERY),
            ("cliente", "Ana Souza", Role.USER),
        ]
        users: dict[str, User] = {}
        for username, name, role in accounts:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username,
                    email=f"{username}@example.com",
                    password=f"{username}123",
                    name=name,
                    role=role,
                    is_staff=role == Role.ADMIN,
                    is_superuser=role == Role.ADMIN,
                )
            users[role] = user
        self.stdout.write(self.style.SUCCESS("Creating users... Done!"))
        return users

    def _seed_zones(self) -> list[DeliveryZone]:
        self.stdout.write("Creating delivery zones...")
        zones = []
        for city, state, fee in [
            ("São Paulo", "SP", Decimal("15.00")),
            ("Guarulhos", "SP", Decimal("20.00")),
            ("Osasco", "SP", Decimal("18.50")),
            ("Campinas", "SP", Decimal("35.00")),
        ]:
            zone, _ = DeliveryZone.objects.get_or_create(
                city=city, state=state, defaults={"delivery_fee": fee}
            )
            zones.append(zone)
        self.stdout.write(self.style.SUCCESS("Creating delivery zones... Done!"))
        return zones

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        catalog = [
            ("Cesta Básica Tradicional", Decimal("129.90")),
            ("Cesta Básica Família", Decimal("219.90")),
            ("Cesta de Café da Manhã", Decimal("159.90")),
            ("Cesta Hortifruti", Decimal("89.90")),
            ("Cesta de Limpeza", Decimal("74.90")),
            ("Cesta Natalina", Decimal("349.00")),
        ]
        products = []
        for name, price in catalog:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={"price": price, "stock": random.randint(5, 120)},
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(
        self,
        users: dict[str, User],
        zones: list[DeliveryZone],
        products: list[Product],
    ) -> int:
        self.stdout.write("Creating orders...")
        if Order.objects.filter(notes__startswith="Seed order").exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        customer = users[Role.USER]
        courier = users[Role.DELIVERY]
        now = timezone.now()
        created = 0

        for i in range(30):
            zone = random.choice(zones)
            status = random.choice(OrderStatus.values)
            method = random.choice(PaymentMethod.values)
            order = Order.objects.create(
                user=customer,
                status=status,
                payment_method=method,
                customer_name=customer.name,
                phone="11999990000",
                delivery_address="Rua das Flores",
                delivery_number=str(100 + i),
                delivery_neighborhood="Centro",
                delivery_city=zone.city,
                delivery_state=zone.state,
                delivery_zone=zone,
                delivery_fee=zone.delivery_fee,
                delivery_person=courier if status != OrderStatus.PENDING else None,
                notes=f"Seed order {i + 1}",
            )

            subtotal = Decimal("0.00")
            for product in random.sample(products, k=random.randint(1, 3)):
                item = OrderItem.objects.create(
                    order=order,
                    product=product,
                    quantity=random.randint(1, 3),
                    unit_price=product.price,
                )
                subtotal += item.subtotal
            order.subtotal = subtotal
            order.apply_delivery_fee(zone.delivery_fee)
            order.save(update_fields=["subtotal", "total"])

            created_at = now - timedelta(days=random.randint(0, 20))
            Order.objects.filter(id=order.id).update(created_at=created_at)

            if method == PaymentMethod.BOLETO:
                self._seed_schedule(order, created_at)
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created

    def _seed_schedule(self, order: Order, created_at) -> None:
        amount = (order.total / 3).quantize(Decimal("0.01"))
        first_due = LocalCalendarDate.from_date(timezone.localtime(created_at).date())
        for number in range(1, 4):
            BoletoInstallment.objects.create(
                order=order,
                installment_number=number,
                amount=amount,
                due_date=first_due.to_date() + timedelta(days=30 * number),
            )
